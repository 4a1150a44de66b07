"""
Messaging provider factory.

Single source of truth for configuration:
- use TelephonyConfig (Pydantic Settings) which loads from OS env + .env
- never read raw os.getenv("TWILIO_*") here
"""

from __future__ import annotations

import logging
from functools import lru_cache

from callrouter.telephony.config import ProviderType, get_telephony_config
from callrouter.telephony.interface import MessagingProvider
from callrouter.telephony.mock_adapter import MockMessagingAdapter
from callrouter.telephony.twilio_adapter import TwilioAdapter

logger = logging.getLogger(__name__)


def _mask(s: str, keep: int = 6) -> str:
    if not s:
        return ""
    if len(s) <= keep:
        return "*" * len(s)
    return f"{s[:keep]}***"


@lru_cache(maxsize=1)
def get_messaging_provider() -> MessagingProvider:
    """
    Create and cache the messaging provider using TelephonyConfig.
    """
    cfg = get_telephony_config()

    logger.info(
        "Messaging config resolved",
        extra={
            "provider_type": cfg.provider_type.value,
            "twilio_account_sid": _mask(cfg.twilio_account_sid),
            "webhook_base_url": cfg.webhook_base_url,
        },
    )

    if cfg.provider_type == ProviderType.TWILIO:
        return TwilioAdapter(cfg)

    if cfg.provider_type == ProviderType.MOCK:
        return MockMessagingAdapter()

    raise ValueError(f"Unsupported messaging provider_type: {cfg.provider_type}")
