"""
Call-flow handlers.

Three stateless steps driven by provider callbacks:

    forward    inbound call -> routing lookup -> <Dial> with whisper and
               a fallback action pointing at the voicemail step
    voicemail  greeting + <Record> whose completion callback points at the
               notifier step
    notify     text the office a link to the recording

Per-call state (the office destination, ``smsTarget``) travels only in the
callback URLs. Each step is the edge of its own error domain: failures are
logged and turned into something audible (or nothing at all, for the text
message), never propagated to the provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from callrouter.routing.assets import AssetStore
from callrouter.routing.models import OfficeRecord
from callrouter.routing.table import load_routing_table
from callrouter.shared.logging import get_logger
from callrouter.telephony.config import TelephonyConfig
from callrouter.telephony.interface import (
    MessagingProvider,
    MessagingProviderError,
    OutboundMessage,
)
from callrouter.telephony.prompts import PromptCatalog
from callrouter.telephony.twiml import (
    RECORD_FROM_ANSWER_DUAL,
    Dial,
    Number,
    Record,
    VoiceResponse,
)

logger = get_logger(__name__)

VOICEMAIL_PATH = "/voicemail"
NOTIFIER_PATH = "/send-sms"

SMS_TARGET_PARAM = "smsTarget"
OFFICE_NAME_PARAM = "officeName"

VOICEMAIL_PREAMBLE = "New Voicemail! You have a new message from"


def with_query(url: str, params: dict[str, str]) -> str:
    """Append query parameters to ``url``, keeping any it already carries.

    New values are percent-encoded (space -> ``%20``, ``+`` -> ``%2B``).
    """
    parts = urlsplit(url)
    extra = urlencode(params, quote_via=quote)
    # the configured query is kept byte-for-byte
    query = f"{parts.query}&{extra}" if parts.query else extra
    return urlunsplit(parts._replace(query=query))


def compose_voicemail_text(caller: str, recording_url: str) -> str:
    return f"{VOICEMAIL_PREAMBLE} {caller}. Listen here: {recording_url}"


@dataclass(frozen=True)
class RecordingEvent:
    """Fields of the recording-completion callback the notifier needs."""

    to: str
    call_from: str
    recording_url: str
    sms_target: str
    recording_sid: str | None = None


class CallFlowHandler:
    """Builds the voice-response documents and the voicemail notification."""

    def __init__(
        self,
        config: TelephonyConfig,
        asset_store: AssetStore,
        messaging: MessagingProvider,
        prompts: PromptCatalog | None = None,
    ) -> None:
        self._config = config
        self._asset_store = asset_store
        self._messaging = messaging
        self._prompts = prompts or PromptCatalog.from_config(config)

    # ---- URLs

    def voicemail_url(self, sms_target: str) -> str:
        return with_query(
            self._config.get_webhook_url(VOICEMAIL_PATH),
            {SMS_TARGET_PARAM: sms_target},
        )

    def notifier_url(self, sms_target: str) -> str:
        return with_query(
            self._config.get_webhook_url(NOTIFIER_PATH),
            {SMS_TARGET_PARAM: sms_target},
        )

    def whisper_url(self, office: OfficeRecord) -> str | None:
        base = self._config.whisper_prompt_url
        if not base:
            return None
        return with_query(base, {OFFICE_NAME_PARAM: office.office_name})

    # ---- Forwarder

    async def forward(self, called_number: str, caller: str) -> VoiceResponse:
        """Bridge the inbound call to the office mapped to ``called_number``."""
        response = VoiceResponse()

        logger.info(
            "Forwarder started",
            extra={"called_number": called_number, "caller": caller},
        )

        try:
            table = await load_routing_table(
                self._asset_store, self._config.routing_asset_path
            )
            office = table.lookup(called_number)
        except Exception:
            logger.exception(
                "Routing lookup failed",
                extra={
                    "called_number": called_number,
                    "asset_path": self._config.routing_asset_path,
                },
            )
            response.append(self._prompts.internal_error()).hangup()
            return response

        if office is None:
            logger.warning(
                "No office mapped to called number",
                extra={"called_number": called_number},
            )
            response.append(self._prompts.out_of_service()).hangup()
            return response

        whisper_url = self.whisper_url(office)
        if whisper_url is None:
            logger.warning(
                "Whisper prompt URL not configured; bridging without whisper",
                extra={"office_name": office.office_name},
            )

        if not caller:
            logger.warning(
                "Caller number missing; bridging with the provider's default caller id",
                extra={"called_number": called_number},
            )

        logger.info(
            "Forwarding call",
            extra={
                "called_number": called_number,
                "destination": office.destination,
                "office_name": office.office_name,
            },
        )

        response.append(
            Dial(
                number=Number(phone=office.destination, url=whisper_url),
                caller_id=caller or None,
                action=self.voicemail_url(office.destination),
                record=RECORD_FROM_ANSWER_DUAL,
            )
        )
        return response

    # ---- Voicemail

    def voicemail(self, sms_target: str) -> VoiceResponse:
        """Greeting, recording, then hangup."""
        response = VoiceResponse()
        response.append(self._prompts.voicemail_greeting())

        if sms_target:
            record = Record(
                recording_status_callback=self.notifier_url(sms_target),
                recording_status_callback_event="completed",
            )
        else:
            # nobody to notify; keep the recording for the provider console
            logger.warning("Voicemail invoked without smsTarget; recording without callback")
            record = Record()

        response.append(record).hangup()
        return response

    # ---- Notifier

    async def notify(self, event: RecordingEvent) -> bool:
        """Text the office a link to the recording. Single attempt, never raises.

        Returns:
            True if the provider accepted the message.
        """
        missing = [
            name
            for name, value in (
                ("smsTarget", event.sms_target),
                ("To", event.to),
                ("RecordingUrl", event.recording_url),
            )
            if not value
        ]
        if missing:
            logger.warning(
                "Recording callback missing fields; no message sent",
                extra={"missing": missing, "recording_sid": event.recording_sid},
            )
            return False

        message = OutboundMessage(
            to=event.sms_target,
            from_number=event.to,
            body=compose_voicemail_text(event.call_from, event.recording_url),
        )

        try:
            result = await self._messaging.send_message(message)
        except MessagingProviderError as e:
            logger.error(
                "Voicemail notification failed",
                extra={
                    "to": message.to,
                    "error_code": e.error_code,
                    "error": str(e),
                    "recording_sid": event.recording_sid,
                },
            )
            return False
        except Exception:
            logger.exception(
                "Voicemail notification failed",
                extra={"to": message.to, "recording_sid": event.recording_sid},
            )
            return False

        logger.info(
            "Voicemail notification sent",
            extra={
                "to": message.to,
                "provider_message_id": result.provider_message_id,
                "recording_sid": event.recording_sid,
            },
        )
        return True
