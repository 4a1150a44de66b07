"""
Pytest configuration and fixtures for the call-flow tests.
"""

from __future__ import annotations

import json
import sys
import xml.etree.ElementTree as ET
from collections.abc import Generator
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fastapi.testclient import TestClient  # noqa: E402

from callrouter.routing.assets import InMemoryAssetStore  # noqa: E402
from callrouter.telephony.config import ProviderType, TelephonyConfig  # noqa: E402
from callrouter.telephony.mock_adapter import MockMessagingAdapter  # noqa: E402
from callrouter.telephony.webhooks.handler import CallFlowHandler  # noqa: E402

WHISPER_URL = "https://prompts.example.com/whisper"

OFFICE_DATA = {
    "+15550100": {"destination": "+15551234567", "officeName": "North Office"},
    "+15550101": {"destination": "+15557654000", "officeName": "South & East"},
}


def parse_twiml(body: str) -> ET.Element:
    """Parse a rendered voice-response document and return <Response>."""
    root = ET.fromstring(body)
    assert root.tag == "Response"
    return root


@pytest.fixture
def office_data() -> dict[str, dict[str, str]]:
    return {k: dict(v) for k, v in OFFICE_DATA.items()}


@pytest.fixture
def assets_dir(tmp_path: Path, office_data: dict[str, dict[str, str]]) -> Path:
    (tmp_path / "office_data.json").write_text(json.dumps(office_data), encoding="utf-8")
    return tmp_path


@pytest.fixture
def telephony_config(assets_dir: Path) -> TelephonyConfig:
    return TelephonyConfig(
        provider_type=ProviderType.MOCK,
        twilio_account_sid="AC_TEST_ACCOUNT_SID",
        twilio_auth_token="test_auth_token_12345",
        webhook_base_url="",
        webhook_path_prefix="/webhooks/telephony",
        whisper_prompt_url=WHISPER_URL,
        assets_dir=assets_dir,
        routing_asset_path="/office_data.json",
        prompt_voice="Google.en-US-Chirp3-HD-Kore",
        contact_url="www.example.com/contact",
        validate_signatures=False,
    )


@pytest.fixture
def messaging() -> MockMessagingAdapter:
    return MockMessagingAdapter()


@pytest.fixture
def asset_store(office_data: dict[str, dict[str, str]]) -> InMemoryAssetStore:
    return InMemoryAssetStore({"/office_data.json": json.dumps(office_data)})


@pytest.fixture
def handler(
    telephony_config: TelephonyConfig,
    asset_store: InMemoryAssetStore,
    messaging: MockMessagingAdapter,
) -> CallFlowHandler:
    return CallFlowHandler(
        config=telephony_config,
        asset_store=asset_store,
        messaging=messaging,
    )


@pytest.fixture
def client(
    telephony_config: TelephonyConfig,
    messaging: MockMessagingAdapter,
) -> Generator[TestClient, None, None]:
    """TestClient with config and messaging provider overridden."""
    from callrouter.main import app
    from callrouter.telephony.config import get_telephony_config
    from callrouter.telephony.factory import get_messaging_provider

    app.dependency_overrides[get_telephony_config] = lambda: telephony_config
    app.dependency_overrides[get_messaging_provider] = lambda: messaging
    yield TestClient(app)
    app.dependency_overrides.clear()
