"""
Telephony provider configuration.

Single source of truth for the call flow's environment:
- provider credentials for outbound text messages
- base URL used to build provider callback URLs
- whisper prompt endpoint and routing asset location
- prompt voice and contact text
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VOICE = "Google.en-US-Chirp3-HD-Kore"


class ProviderType(str, Enum):
    """Supported messaging provider types."""

    TWILIO = "twilio"
    MOCK = "mock"


class TelephonyConfig(BaseSettings):
    """Telephony configuration from environment."""

    model_config = SettingsConfigDict(
        env_prefix="TELEPHONY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Provider selection
    provider_type: ProviderType = Field(default=ProviderType.TWILIO)

    # Provider credentials
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")

    # Base URL prepended to callback paths. Empty -> relative paths, which the
    # provider resolves against the URL of the request that returned them.
    webhook_base_url: str = Field(default="")
    webhook_path_prefix: str = Field(default="/webhooks/telephony")

    # External prompt endpoint accepting an officeName query parameter
    whisper_prompt_url: str = Field(
        default="",
        validation_alias=AliasChoices(
            "TELEPHONY_WHISPER_PROMPT_URL",
            "WHISPER_TWIML_BIN_URL",
            "whisper_prompt_url",
        ),
    )

    # Routing table asset
    assets_dir: Path = Field(default=Path("assets"))
    routing_asset_path: str = Field(default="/office_data.json")

    # Prompts
    prompt_voice: str = Field(default=DEFAULT_VOICE)
    contact_url: str = Field(default="www.example.com/contact")

    # Request authenticity (X-Twilio-Signature)
    validate_signatures: bool = Field(default=False)

    sms_timeout_seconds: float = Field(default=15.0, gt=0, le=120)

    def get_webhook_url(self, path: str) -> str:
        base = self.webhook_base_url.rstrip("/")
        prefix = self.webhook_path_prefix.rstrip("/")
        return f"{base}{prefix}{path}"


@lru_cache(maxsize=1)
def get_telephony_config() -> TelephonyConfig:
    return TelephonyConfig()
