"""Tests for the WhatsApp webhook and health endpoints."""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from aida_bot.api.deps import get_history_store, get_orchestrator
from aida_bot.config import Settings, get_settings
from aida_bot.main import app
from aida_bot.schemas.conversation import OutboundReply


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    mock.handle_message = AsyncMock(return_value=OutboundReply(success=True, text="Hi! I'm Aida."))
    return mock


@pytest.fixture
def app_settings() -> Settings:
    return Settings(_env_file=None, whatsapp_verify_token="verify-me", whatsapp_app_secret="")


@pytest.fixture
def client(orchestrator, app_settings):
    """Test client with the orchestrator and settings overridden."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_settings] = lambda: app_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestReceiveMessage:
    def test_text_message_is_answered(self, client, orchestrator, whatsapp_payload):
        response = client.post("/webhook", json=whatsapp_payload("Hello"))

        assert response.status_code == 200
        assert response.json() == {"success": True, "response": "Hi! I'm Aida."}
        orchestrator.handle_message.assert_awaited_once_with("60123456789", "Hello")

    def test_alias_route(self, client, orchestrator, whatsapp_payload):
        response = client.post("/webhooks/whatsapp", json=whatsapp_payload("Hello"))

        assert response.status_code == 200
        orchestrator.handle_message.assert_awaited_once()

    def test_failed_reply_still_returns_200(self, client, orchestrator, whatsapp_payload):
        orchestrator.handle_message.return_value = OutboundReply(success=False, text="calendar down")
        response = client.post("/webhook", json=whatsapp_payload("Book it"))

        assert response.status_code == 200
        assert response.json() == {"success": False, "response": "calendar down"}

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"entry": []},
            {"entry": [{"changes": []}]},
            {"entry": [{"changes": [{"value": {"statuses": [{"id": "x", "status": "read"}]}}]}]},
        ],
        ids=["empty", "no-entry", "no-changes", "status-update"],
    )
    def test_payload_without_message_is_rejected(self, client, orchestrator, payload):
        response = client.post("/webhook", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or non-text message format."}
        orchestrator.handle_message.assert_not_awaited()

    def test_non_text_message_is_rejected(self, client, orchestrator, whatsapp_payload):
        response = client.post("/webhook", json=whatsapp_payload(message_type="image"))

        assert response.status_code == 400
        orchestrator.handle_message.assert_not_awaited()

    def test_empty_text_is_rejected(self, client, orchestrator, whatsapp_payload):
        response = client.post("/webhook", json=whatsapp_payload(""))

        assert response.status_code == 400
        orchestrator.handle_message.assert_not_awaited()

    def test_malformed_json_is_rejected(self, client, orchestrator):
        response = client.post(
            "/webhook", content=b"{not json", headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        orchestrator.handle_message.assert_not_awaited()

    def test_processing_fault_returns_500_without_internals(self, client, orchestrator, whatsapp_payload):
        orchestrator.handle_message.side_effect = RuntimeError("Gemini exploded")
        response = client.post("/webhook", json=whatsapp_payload("Hello"))

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process webhook request."}
        assert "Gemini exploded" not in response.text


class TestSignature:
    @pytest.fixture
    def app_settings(self) -> Settings:
        return Settings(_env_file=None, whatsapp_verify_token="verify-me", whatsapp_app_secret="shh")

    def test_missing_signature_is_forbidden(self, client, orchestrator, whatsapp_payload):
        response = client.post("/webhook", json=whatsapp_payload("Hello"))

        assert response.status_code == 403
        orchestrator.handle_message.assert_not_awaited()

    def test_valid_signature_is_accepted(self, client, whatsapp_payload):
        body = json.dumps(whatsapp_payload("Hello")).encode()
        signature = hmac.new(b"shh", body, hashlib.sha256).hexdigest()

        response = client.post(
            "/webhook",
            content=body,
            headers={"Content-Type": "application/json", "X-Hub-Signature-256": f"sha256={signature}"},
        )

        assert response.status_code == 200

    def test_wrong_signature_is_forbidden(self, client, whatsapp_payload):
        response = client.post(
            "/webhook",
            json=whatsapp_payload("Hello"),
            headers={"X-Hub-Signature-256": "sha256=deadbeef"},
        )

        assert response.status_code == 403


class TestVerification:
    def test_challenge_is_echoed(self, client):
        response = client.get(
            "/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "12345"},
        )

        assert response.status_code == 200
        assert response.text == "12345"

    def test_wrong_token_is_forbidden(self, client):
        response = client.get(
            "/webhooks/whatsapp",
            params={"hub.mode": "subscribe", "hub.verify_token": "nope", "hub.challenge": "12345"},
        )

        assert response.status_code == 403

    def test_missing_parameters(self, client):
        response = client.get("/webhook", params={"hub.mode": "subscribe"})

        assert response.status_code == 400


class TestNotReady:
    def test_returns_503_before_startup(self, whatsapp_payload):
        """Without the lifespan having run there is no orchestrator to use."""
        app.state.context = None
        response = TestClient(app).post("/webhook", json=whatsapp_payload("Hello"))

        assert response.status_code == 503
        assert "starting up" in response.json()["detail"].lower()


class TestLifespan:
    def test_startup_fails_when_database_is_unreachable(self):
        context = MagicMock()
        context.history.ping = AsyncMock(side_effect=ConnectionRefusedError("db down"))
        context.close = AsyncMock()

        with patch("aida_bot.main.build_context", return_value=context):
            with pytest.raises(ConnectionRefusedError):
                with TestClient(app):
                    pass

        context.close.assert_awaited_once()

    def test_context_is_stored_and_closed(self):
        context = MagicMock()
        context.history.ping = AsyncMock()
        context.close = AsyncMock()

        with patch("aida_bot.main.build_context", return_value=context):
            with TestClient(app):
                assert app.state.context is context

        assert app.state.context is None
        context.close.assert_awaited_once()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health_reports_database(self, client):
        history = MagicMock()
        history.ping = AsyncMock(side_effect=ConnectionError("db down"))
        app.dependency_overrides[get_history_store] = lambda: history

        response = client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["services"]["database"]["status"] == "unhealthy"
