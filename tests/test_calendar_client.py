"""Tests for the Google Calendar client wrapper."""

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from aida_bot.services.calendar import CalendarAPIError, GoogleCalendarClient, load_calendar_client

EVENT_BODY = {"summary": "Kedai Runcit Ali Business Onboarding"}


@pytest.fixture
def service():
    mock = MagicMock()
    mock.events.return_value.insert.return_value.execute.return_value = {
        "id": "evt-1",
        "htmlLink": "https://www.google.com/calendar/event?eid=evt-1",
    }
    return mock


class TestInsertEvent:
    @pytest.mark.asyncio
    async def test_insert_returns_created_event(self, service):
        client = GoogleCalendarClient(service)
        event = await client.insert_event("primary", EVENT_BODY)

        assert event["id"] == "evt-1"
        service.events.return_value.insert.assert_called_once_with(
            calendarId="primary", body=EVENT_BODY, sendUpdates="none",
        )

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self, service):
        resp = MagicMock(status=404, reason="Not Found")
        service.events.return_value.insert.return_value.execute.side_effect = HttpError(resp, b"Not Found")

        client = GoogleCalendarClient(service)
        with pytest.raises(CalendarAPIError) as exc_info:
            await client.insert_event("missing@group.calendar.google.com", EVENT_BODY)

        assert exc_info.value.status_code == 404


class TestLoadCalendarClient:
    def test_unconfigured_path(self):
        assert load_calendar_client("") is None

    def test_missing_file(self, tmp_path):
        assert load_calendar_client(str(tmp_path / "missing.json")) is None

    def test_unreadable_credentials(self, tmp_path):
        path = tmp_path / "google-calendar-credentials.json"
        path.write_text("{}")

        assert load_calendar_client(str(path)) is None

    def test_valid_credentials(self, tmp_path):
        path = tmp_path / "google-calendar-credentials.json"
        path.write_text("{}")

        with patch.object(GoogleCalendarClient, "from_service_account_file") as factory:
            client = load_calendar_client(str(path))

        assert client is factory.return_value
        factory.assert_called_once_with(path)
