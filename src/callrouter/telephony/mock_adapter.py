"""
Mock messaging adapter for testing and local runs.

- Adapter is injectable for testing with mock provider
"""

import logging

from callrouter.telephony.interface import (
    MessageSendError,
    MessageSendResult,
    MessagingProvider,
    OutboundMessage,
)

logger = logging.getLogger(__name__)


class MockMessagingAdapter(MessagingProvider):
    """Mock messaging provider that records messages instead of sending them."""

    def __init__(self) -> None:
        self._messages: list[OutboundMessage] = []
        self._attempts: int = 0
        self._next_message_id: int = 1
        self._should_fail: bool = False
        self._fail_error: str = "Mock failure"
        self._fail_code: str = "MOCK_ERROR"
        self._signature_valid: bool = True

    def reset(self) -> None:
        self._messages.clear()
        self._attempts = 0
        self._next_message_id = 1
        self._should_fail = False
        self._fail_error = "Mock failure"
        self._fail_code = "MOCK_ERROR"
        self._signature_valid = True

    def configure_failure(
        self,
        should_fail: bool = True,
        error_message: str = "Mock failure",
        error_code: str = "MOCK_ERROR",
    ) -> None:
        self._should_fail = should_fail
        self._fail_error = error_message
        self._fail_code = error_code

    def configure_signature(self, valid: bool) -> None:
        self._signature_valid = valid

    @property
    def messages(self) -> list[OutboundMessage]:
        return self._messages.copy()

    @property
    def attempts(self) -> int:
        return self._attempts

    def get_last_message(self) -> OutboundMessage | None:
        return self._messages[-1] if self._messages else None

    def send_message_sync(self, message: OutboundMessage) -> MessageSendResult:
        logger.info("Mock: Sending message", extra={"to": message.to})

        self._attempts += 1
        if self._should_fail:
            raise MessageSendError(
                message=self._fail_error,
                error_code=self._fail_code,
            )

        self._messages.append(message)

        provider_message_id = f"MOCK_SMS_{self._next_message_id:06d}"
        self._next_message_id += 1

        return MessageSendResult(
            provider_message_id=provider_message_id,
            status="queued",
            raw_response={"mock": True, "sid": provider_message_id},
        )

    def validate_webhook_signature(
        self,
        params: dict[str, str],
        signature: str,
        url: str,
    ) -> bool:
        return self._signature_valid
