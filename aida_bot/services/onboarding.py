"""Business onboarding tool: books an onboarding call on Google Calendar.

Every outcome, including configuration problems, unparseable times and
calendar faults, is reported as a ``ToolResult`` so the model's turn still
produces a reply the user can act on.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aida_bot.core.dates import DateParseError, DateResolver
from aida_bot.schemas.conversation import ToolResult
from aida_bot.services.calendar import CalendarAPIError, GoogleCalendarClient

logger = logging.getLogger(__name__)

ONBOARDING_DURATION = timedelta(hours=1)


class OnboardingArgs(BaseModel):
    """Arguments the model supplies to ``business_onboarding``."""

    model_config = ConfigDict(extra="ignore")

    business_name: str
    contact_name: str
    email: str
    contact_number: str
    preferred_time: str
    estimated_transaction_value: str | None = None
    notes: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> Any:
        """The model sometimes sends numbers (phone, value) as JSON numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class EventDescriptor(BaseModel):
    """Calendar event to be created for one onboarding."""

    model_config = ConfigDict(frozen=True)

    summary: str
    description: str
    start: datetime
    end: datetime
    time_zone: str
    attendees: frozenset[str] = Field(default_factory=frozenset)

    def to_google_event(self) -> dict[str, Any]:
        """Render as a Calendar v3 event resource."""
        return {
            "summary": self.summary,
            "description": self.description,
            "start": {"dateTime": self.start.isoformat(), "timeZone": self.time_zone},
            "end": {"dateTime": self.end.isoformat(), "timeZone": self.time_zone},
            "attendees": [{"email": email} for email in sorted(self.attendees)],
        }


class CalendarBooker:
    """Creates onboarding calendar events through the calendar collaborator."""

    def __init__(
        self,
        calendar: GoogleCalendarClient | None,
        calendar_id: str,
        resolver: DateResolver,
        duration: timedelta = ONBOARDING_DURATION,
    ) -> None:
        self._calendar = calendar
        self._calendar_id = calendar_id
        self._resolver = resolver
        self._duration = duration

    def build_event(self, args: OnboardingArgs, start: datetime) -> EventDescriptor:
        """Build the event for *args* starting at *start*.

        The description keeps the user's original ``preferred_time`` text so
        the team can see exactly what was asked for.
        """
        description = "\n".join([
            f"Business: {args.business_name}",
            f"Contact: {args.contact_name}",
            f"Email: {args.email}",
            f"Phone: {args.contact_number}",
            f"Time: {args.preferred_time}",
            f"Est. Value: {args.estimated_transaction_value or 'Not provided'}",
            f"Notes: {args.notes or 'No additional notes provided.'}",
        ])
        return EventDescriptor(
            summary=f"{args.business_name} Business Onboarding",
            description=description,
            start=start,
            end=start + self._duration,
            time_zone=self._resolver.timezone,
            attendees=frozenset({args.email}),
        )

    async def book(self, arguments: dict[str, Any]) -> ToolResult:
        """Run the onboarding tool.

        Args:
            arguments: Raw arguments from the model's function call.

        Returns:
            ToolResult describing the outcome. Never raises.
        """
        # Presence is checked by the tool registry; only wrongly typed values
        # (objects or lists where text is expected) fail here
        try:
            args = OnboardingArgs.model_validate(arguments)
        except ValidationError as e:
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.warning(f"Wrongly typed business_onboarding arguments: {invalid}")
            return ToolResult(
                success=False,
                message=(
                    "Onboarding could not be processed: these details are not in a "
                    f"usable format: {', '.join(invalid)}."
                ),
            )

        logger.info(f"Executing business_onboarding for {args.business_name}")

        if self._calendar is None:
            logger.warning("Skipping calendar event creation: calendar client not initialized")
            return ToolResult(
                success=False,
                message=(
                    f"Onboarding for {args.business_name} was received, but the calendar "
                    "service is not configured so the call could not be scheduled."
                ),
            )

        if not self._calendar_id:
            logger.warning("Skipping calendar event creation: GOOGLE_CALENDAR_ID not set")
            return ToolResult(
                success=False,
                message=(
                    f"Onboarding for {args.business_name} was received, but no target "
                    "calendar is configured so the call could not be scheduled."
                ),
            )

        try:
            start = self._resolver.resolve(args.preferred_time, self._resolver.now())
        except DateParseError:
            logger.warning(f"Invalid preferred_time for {args.business_name}: {args.preferred_time!r}")
            return ToolResult(
                success=False,
                message=(
                    f"{args.business_name} onboarding: invalid preferred_time format "
                    f"({args.preferred_time!r}). Please share a date and time, "
                    "for example 2025-08-09 10:00."
                ),
            )

        event = self.build_event(args, start)

        try:
            await self._calendar.insert_event(
                self._calendar_id,
                event.to_google_event(),
                send_updates="none",
            )
        except Exception as e:
            if not isinstance(e, CalendarAPIError):
                logger.exception(f"Unexpected error creating calendar event: {e}")
            return self._calendar_failure(args, e)

        return ToolResult(
            success=True,
            message=(
                f"{args.business_name} onboarding complete, event scheduled for "
                f"{start.strftime('%a %d %b %Y at %H:%M')} ({self._resolver.timezone})."
            ),
        )

    def _calendar_failure(self, args: OnboardingArgs, error: Exception) -> ToolResult:
        """Classify a calendar fault into a user-facing result."""
        status_code = getattr(error, "status_code", None)
        if status_code == 404 or "not found" in str(error).lower():
            logger.error(f"Calendar {self._calendar_id!r} not found or not shared: {error}")
            return ToolResult(
                success=False,
                message=(
                    f"Could not schedule onboarding for {args.business_name}: the calendar "
                    "was not found. Check GOOGLE_CALENDAR_ID and that the calendar is "
                    "shared with the service account."
                ),
            )
        return ToolResult(
            success=False,
            message=f"Failed to schedule onboarding for {args.business_name}: {error}",
        )
