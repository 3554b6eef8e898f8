"""Shared test fixtures for the Aida test suite."""

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio

from aida_bot.config import Settings
from aida_bot.db import Base, create_engine, create_session_maker
from aida_bot.models.turn import TurnRole
from aida_bot.schemas.conversation import Turn
from aida_bot.services.history import HistoryStore


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    ``aida_bot.main`` reads settings at import time, so these must be in
    place before any test module imports it.
    """
    os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    os.environ.setdefault("GOOGLE_CALENDAR_CREDENTIALS_FILE", "")
    os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
    os.environ.setdefault("WHATSAPP_VERIFY_TOKEN", "verify-me")
    os.environ.setdefault("WHATSAPP_APP_SECRET", "")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-gemini-key",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'history.db'}",
        google_calendar_credentials_file="",
        google_calendar_id="onboarding@group.calendar.google.com",
        rate_limit_enabled=False,
    )


@pytest_asyncio.fixture
async def history_store(settings):
    """HistoryStore on a fresh SQLite file with the schema created."""
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield HistoryStore(create_session_maker(engine))
    await engine.dispose()


@pytest.fixture
def make_turns():
    """Factory fixture for a session's turns with increasing timestamps."""

    def _make(roles: list[str], session_id: str = "60123456789") -> list[Turn]:
        base = datetime(2025, 1, 6, 2, 0, tzinfo=timezone.utc)
        return [
            Turn(
                session_id=session_id,
                role=TurnRole(role),
                text=f"{role} message {i}",
                timestamp=base + timedelta(seconds=i),
            )
            for i, role in enumerate(roles)
        ]

    return _make


@pytest.fixture
def whatsapp_payload():
    """Factory fixture for WhatsApp Cloud API webhook payloads."""

    def _make(
        text: str | None = "Hello",
        sender: str = "60123456789",
        message_type: str = "text",
    ) -> dict[str, Any]:
        message: dict[str, Any] = {
            "from": sender,
            "id": "wamid.HBgLNjAxMjM0NTY3ODkVAgASGBQz",
            "timestamp": "1736128800",
            "type": message_type,
        }
        if message_type == "text":
            message["text"] = {"body": text}
        elif message_type == "image":
            message["image"] = {"id": "img-1", "mime_type": "image/jpeg"}

        return {
            "object": "whatsapp_business_account",
            "entry": [{
                "id": "WABA_ID",
                "changes": [{
                    "field": "messages",
                    "value": {
                        "messaging_product": "whatsapp",
                        "metadata": {
                            "display_phone_number": "60300000000",
                            "phone_number_id": "PHONE_NUMBER_ID",
                        },
                        "contacts": [{"profile": {"name": "Siti"}, "wa_id": sender}],
                        "messages": [message],
                    },
                }],
            }],
        }

    return _make
