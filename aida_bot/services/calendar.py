"""Google Calendar client for booking onboarding calls.

Authenticates with a service-account key file. The discovery-based Google
client is synchronous, so each call is offloaded to a worker thread to keep
the event loop free.

Reference: https://developers.google.com/calendar/api/v3/reference/events/insert
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]


class CalendarAPIError(Exception):
    """Raised when the Google Calendar API rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class GoogleCalendarClient:
    """Thin async wrapper around the Calendar v3 ``events`` resource.

    Usage:
        client = GoogleCalendarClient.from_service_account_file("key.json")
        event = await client.insert_event("team@group.calendar.google.com", body)
    """

    def __init__(self, service: Any) -> None:
        self._service = service

    @classmethod
    def from_service_account_file(cls, path: str | Path) -> "GoogleCalendarClient":
        """Build a client from a service-account JSON key file."""
        credentials = service_account.Credentials.from_service_account_file(
            str(path), scopes=CALENDAR_SCOPES,
        )
        service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return cls(service)

    def _insert(self, calendar_id: str, body: dict[str, Any], send_updates: str) -> dict[str, Any]:
        return self._service.events().insert(
            calendarId=calendar_id,
            body=body,
            sendUpdates=send_updates,
        ).execute()

    async def insert_event(
        self,
        calendar_id: str,
        body: dict[str, Any],
        send_updates: str = "none",
    ) -> dict[str, Any]:
        """Create an event.

        Args:
            calendar_id: Target calendar (e.g. ``primary`` or a group calendar id).
            body: Event resource.
            send_updates: Guest notification policy; ``none`` suppresses emails.

        Returns:
            The created event resource.

        Raises:
            CalendarAPIError: If the API returns an error response.
        """
        try:
            event = await asyncio.to_thread(self._insert, calendar_id, body, send_updates)
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            logger.error(f"Google Calendar API error: status={status}, error={e}")
            raise CalendarAPIError(str(e), status_code=int(status) if status else None) from e

        logger.info(f"Google Calendar event created: {event.get('htmlLink')}")
        return event


def load_calendar_client(credentials_file: str) -> GoogleCalendarClient | None:
    """Create the calendar client, or None when credentials are unavailable.

    A missing or unreadable key file is not fatal at startup; the onboarding
    tool reports the calendar as unconfigured instead.
    """
    if not credentials_file:
        logger.warning("Google Calendar credentials file not configured; calendar booking disabled")
        return None

    path = Path(credentials_file)
    if not path.is_file():
        logger.warning(f"Google Calendar credentials not found at {path}; calendar booking disabled")
        return None

    try:
        client = GoogleCalendarClient.from_service_account_file(path)
    except Exception as e:
        logger.error(f"Error loading Google Calendar credentials: {e}")
        return None

    logger.info("Google Calendar API client initialized.")
    return client
