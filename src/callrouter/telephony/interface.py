"""
Messaging provider interface definition.

- MessagingProvider interface defines send_message
- Interface defines validate_webhook_signature
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import anyio


@dataclass(frozen=True)
class OutboundMessage:
    """Text message to dispatch through the provider."""

    to: str
    from_number: str
    body: str


@dataclass(frozen=True)
class MessageSendResult:
    """Provider acknowledgement of an accepted message."""

    provider_message_id: str
    status: str
    raw_response: dict[str, Any] = field(default_factory=dict)


class MessagingProviderError(Exception):
    """Base exception for messaging provider errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.provider_response = provider_response or {}


class MessageSendError(MessagingProviderError):
    """Error during message dispatch."""


class MessagingProvider(ABC):
    """Abstract interface for the outbound messaging collaborator.

    ``send_message_sync`` is the source of truth; the async entrypoint runs it
    in a worker thread so webhook handlers never block the event loop.
    """

    async def send_message(self, message: OutboundMessage) -> MessageSendResult:
        """Send one text message (async)."""
        return await anyio.to_thread.run_sync(self.send_message_sync, message)

    @abstractmethod
    def send_message_sync(self, message: OutboundMessage) -> MessageSendResult:
        """Send one text message.

        Raises:
            MessageSendError: If the provider rejects the message or is unreachable.
        """
        ...

    @abstractmethod
    def validate_webhook_signature(
        self,
        params: dict[str, str],
        signature: str,
        url: str,
    ) -> bool:
        """Validate webhook signature for authenticity."""
        ...
