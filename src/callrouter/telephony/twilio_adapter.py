"""
Twilio messaging adapter.

Sends text messages through the Twilio REST API and validates the
``X-Twilio-Signature`` header of incoming webhooks.
"""

from __future__ import annotations

import hashlib
import hmac
from base64 import b64encode

import httpx

from callrouter.shared.logging import get_logger
from callrouter.telephony.config import TelephonyConfig, get_telephony_config
from callrouter.telephony.interface import (
    MessageSendError,
    MessageSendResult,
    MessagingProvider,
    OutboundMessage,
)

logger = get_logger(__name__)


class TwilioAdapter(MessagingProvider):
    """Twilio messaging adapter.

    Uses httpx for HTTP requests. An injected client is never closed by the
    adapter.
    """

    TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"

    def __init__(
        self,
        config: TelephonyConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config or get_telephony_config()
        self._owns_client = http_client is None
        # built eagerly: sends run concurrently in worker threads
        if http_client is None:
            http_client = httpx.Client(
                timeout=httpx.Timeout(self._config.sms_timeout_seconds)
            )
        self._http_client: httpx.Client | None = http_client

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            raise MessageSendError(message="Adapter is closed", error_code="CLIENT_CLOSED")
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _get_auth(self) -> tuple[str, str]:
        return (self._config.twilio_account_sid, self._config.twilio_auth_token)

    def _get_api_url(self, endpoint: str) -> str:
        account_sid = self._config.twilio_account_sid
        return f"{self.TWILIO_API_BASE}/Accounts/{account_sid}{endpoint}"

    def send_message_sync(self, message: OutboundMessage) -> MessageSendResult:
        """Send a text message via Twilio (sync)."""
        client = self._get_client()

        payload = {
            "To": message.to,
            "From": message.from_number,
            "Body": message.body,
        }

        logger.info(
            "Sending Twilio message",
            extra={"to": message.to, "from_number": message.from_number},
        )

        try:
            response = client.post(
                self._get_api_url("/Messages.json"),
                data=payload,
                auth=self._get_auth(),
            )
        except httpx.HTTPError as e:
            raise MessageSendError(
                message=f"HTTP error: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {"message": response.text}
            raise MessageSendError(
                message=error_data.get("message", "Message dispatch failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()

        return MessageSendResult(
            provider_message_id=data.get("sid", ""),
            status=data.get("status", "queued"),
            raw_response=data,
        )

    def validate_webhook_signature(
        self,
        params: dict[str, str],
        signature: str,
        url: str,
    ) -> bool:
        """Validate Twilio webhook signature.

        Twilio signs the full request URL (query string included) followed by
        the POST parameters sorted by name, using HMAC-SHA1 keyed with the
        account auth token.
        """
        if not self._config.twilio_auth_token:
            logger.warning("No auth token configured, skipping signature validation")
            return True

        if not signature:
            return False

        data_str = url
        for key in sorted(params.keys()):
            data_str += key + params[key]

        computed = hmac.new(
            self._config.twilio_auth_token.encode("utf-8"),
            data_str.encode("utf-8"),
            hashlib.sha1,
        ).digest()

        computed_sig = b64encode(computed).decode("utf-8")
        return hmac.compare_digest(computed_sig, signature)
