"""
Spoken prompts played by the call flow.
"""

from __future__ import annotations

from dataclasses import dataclass

from callrouter.telephony.config import DEFAULT_VOICE, TelephonyConfig
from callrouter.telephony.twiml import Say

OUT_OF_SERVICE_TEXT = "We're sorry, the number you have dialed is not in service."
INTERNAL_ERROR_TEXT = "We are sorry, an internal error has occurred."
VOICEMAIL_GREETING_TEXT = (
    "We are sorry, no one is available to take your call. "
    "Please leave a message after the beep."
)


@dataclass(frozen=True)
class PromptCatalog:
    """Fixed prompts spoken with one voice identity.

    The failure prompts point the caller at ``contact_url`` when one is set.
    """

    voice: str = DEFAULT_VOICE
    contact_url: str = ""

    @classmethod
    def from_config(cls, config: TelephonyConfig) -> PromptCatalog:
        return cls(voice=config.prompt_voice, contact_url=config.contact_url)

    def _with_contact(self, text: str) -> str:
        if not self.contact_url:
            return text
        return f"{text} Please visit our website at {self.contact_url}."

    def out_of_service(self) -> Say:
        return Say(text=self._with_contact(OUT_OF_SERVICE_TEXT), voice=self.voice)

    def internal_error(self) -> Say:
        return Say(text=self._with_contact(INTERNAL_ERROR_TEXT), voice=self.voice)

    def voicemail_greeting(self) -> Say:
        return Say(text=VOICEMAIL_GREETING_TEXT, voice=self.voice)
