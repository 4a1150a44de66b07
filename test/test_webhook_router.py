"""End-to-end tests for the webhook endpoints."""

from base64 import b64encode
import hashlib
import hmac
from urllib.parse import parse_qs, urlsplit

from fastapi.testclient import TestClient

from callrouter.telephony.config import TelephonyConfig
from callrouter.telephony.mock_adapter import MockMessagingAdapter
from callrouter.telephony.prompts import INTERNAL_ERROR_TEXT, OUT_OF_SERVICE_TEXT

from conftest import WHISPER_URL, parse_twiml


def _sign(token: str, url: str, params: dict[str, str]) -> str:
    data = url + "".join(k + params[k] for k in sorted(params))
    return b64encode(hmac.new(token.encode(), data.encode(), hashlib.sha1).digest()).decode()


class TestForwarderEndpoint:
    def test_happy_path(self, client: TestClient) -> None:
        resp = client.post(
            "/webhooks/telephony/forwarder",
            data={"calledNumber": "+15550100", "caller": "+15557654321", "CallSid": "CA1"},
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/xml")

        root = parse_twiml(resp.text)
        dial = root.find("Dial")
        assert dial is not None
        assert dial.get("callerId") == "+15557654321"
        assert dial.get("record") == "record-from-answer-dual"
        assert "smsTarget=%2B15551234567" in dial.get("action")

        number = dial.find("Number")
        assert number.text == "+15551234567"
        assert number.get("url").startswith(WHISPER_URL)
        assert "officeName=North%20Office" in number.get("url")

    def test_query_parameters_accepted(self, client: TestClient) -> None:
        resp = client.get(
            "/webhooks/telephony/forwarder",
            params={"calledNumber": "+15550101", "caller": "+15557654321"},
        )

        assert resp.status_code == 200
        number = parse_twiml(resp.text).find("Dial/Number")
        assert number.text == "+15557654000"
        assert parse_qs(urlsplit(number.get("url")).query) == {"officeName": ["South & East"]}

    def test_no_match(self, client: TestClient) -> None:
        resp = client.post(
            "/webhooks/telephony/forwarder",
            data={"calledNumber": "+15559999999", "caller": "+15557654321"},
        )

        assert resp.status_code == 200
        root = parse_twiml(resp.text)
        assert root.find("Dial") is None
        assert len(root.findall("Say")) == 1
        assert root.find("Say").text.startswith(OUT_OF_SERVICE_TEXT)
        assert len(root.findall("Hangup")) == 1

    def test_asset_missing(self, client: TestClient, telephony_config: TelephonyConfig) -> None:
        (telephony_config.assets_dir / "office_data.json").unlink()

        resp = client.post(
            "/webhooks/telephony/forwarder",
            data={"calledNumber": "+15550100", "caller": "+15557654321"},
        )

        assert resp.status_code == 200
        root = parse_twiml(resp.text)
        assert root.find("Dial") is None
        assert root.find("Say").text.startswith(INTERNAL_ERROR_TEXT)
        assert root.find("Hangup") is not None


class TestVoicemailEndpoint:
    def test_records_with_notifier_callback(self, client: TestClient) -> None:
        resp = client.post(
            "/webhooks/telephony/voicemail?smsTarget=%2B15551234567",
            data={"DialCallStatus": "no-answer", "CallSid": "CA1"},
        )

        assert resp.status_code == 200
        root = parse_twiml(resp.text)
        assert [child.tag for child in root] == ["Say", "Record", "Hangup"]
        record = root.find("Record")
        assert record.get("recordingStatusCallback") == (
            "/webhooks/telephony/send-sms?smsTarget=%2B15551234567"
        )
        assert record.get("recordingStatusCallbackEvent") == "completed"

    def test_identical_input_identical_bytes(self, client: TestClient) -> None:
        url = "/webhooks/telephony/voicemail?smsTarget=%2B15551234567"

        assert client.post(url).content == client.post(url).content


class TestSendSmsEndpoint:
    def test_sends_message(self, client: TestClient, messaging: MockMessagingAdapter) -> None:
        resp = client.post(
            "/webhooks/telephony/send-sms?smsTarget=%2B15551234567",
            data={
                "To": "+15550100",
                "CallFrom": "+15557654321",
                "RecordingUrl": "https://example/rec/abc",
                "RecordingStatus": "completed",
            },
        )

        assert resp.status_code == 200
        assert resp.json() == {"status": "success"}
        assert len(messaging.messages) == 1
        message = messaging.messages[0]
        assert message.to == "+15551234567"
        assert message.from_number == "+15550100"
        assert "+15557654321" in message.body
        assert "https://example/rec/abc" in message.body

    def test_dispatch_failure_still_acknowledged(
        self,
        client: TestClient,
        messaging: MockMessagingAdapter,
    ) -> None:
        messaging.configure_failure()

        resp = client.post(
            "/webhooks/telephony/send-sms?smsTarget=%2B15551234567",
            data={
                "To": "+15550100",
                "CallFrom": "+15557654321",
                "RecordingUrl": "https://example/rec/abc",
            },
        )

        assert resp.status_code == 200
        assert resp.json() == {"status": "success"}
        assert messaging.attempts == 1


class TestSignatureValidation:
    def test_rejects_bad_signature(
        self,
        client: TestClient,
        telephony_config: TelephonyConfig,
        messaging: MockMessagingAdapter,
    ) -> None:
        telephony_config.validate_signatures = True
        messaging.configure_signature(False)

        resp = client.post(
            "/webhooks/telephony/send-sms?smsTarget=%2B15550000000",
            data={"To": "+15550100", "CallFrom": "+1", "RecordingUrl": "https://x"},
            headers={"X-Twilio-Signature": "forged"},
        )

        assert resp.status_code == 403
        assert messaging.attempts == 0

    def test_accepts_valid_twilio_signature(
        self,
        client: TestClient,
        telephony_config: TelephonyConfig,
    ) -> None:
        from callrouter.main import app
        from callrouter.telephony.factory import get_messaging_provider
        from callrouter.telephony.twilio_adapter import TwilioAdapter

        telephony_config.validate_signatures = True
        telephony_config.webhook_base_url = "https://calls.example.com"
        app.dependency_overrides[get_messaging_provider] = lambda: TwilioAdapter(telephony_config)

        params = {"calledNumber": "+15550100", "caller": "+15557654321"}
        url = "https://calls.example.com/webhooks/telephony/forwarder"
        signature = _sign(telephony_config.twilio_auth_token, url, params)

        resp = client.post(
            "/webhooks/telephony/forwarder",
            data=params,
            headers={"X-Twilio-Signature": signature},
        )

        assert resp.status_code == 200
        assert parse_twiml(resp.text).find("Dial") is not None


def test_health(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}
