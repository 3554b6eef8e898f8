"""Resolution of user-supplied time expressions to absolute timestamps.

The LLM is asked to hand over ISO 8601 strings, but users routinely give
phrases like "next Tuesday at 3pm" which the model passes through verbatim.
Resolution therefore tries a strict ISO parse first and falls back to
natural-language parsing anchored at a reference time, preferring dates in
the future when the expression is ambiguous.
"""

import logging
import re
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import dateparser

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Kuala_Lumpur"

_WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday|mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun"

# "next tuesday" / "this tuesday" both mean the upcoming occurrence; the
# future-preference setting already picks that, so the qualifier is dropped.
_WEEKDAY_QUALIFIER_RE = re.compile(rf"\b(?:next|this|coming)\s+(?=(?:{_WEEKDAYS})\b)", re.IGNORECASE)
_WEEKDAY_RE = re.compile(rf"\b(?:{_WEEKDAYS})\b", re.IGNORECASE)

_WEEK = timedelta(days=7)


class DateParseError(ValueError):
    """Raised when a time expression cannot be resolved."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Could not resolve a date/time from {value!r}")


class DateResolver:
    """Converts ISO 8601 or natural-language expressions to aware datetimes.

    All results are expressed in the resolver's reference timezone.
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE) -> None:
        self._timezone_name = timezone
        self._tz = ZoneInfo(timezone)

    @property
    def timezone(self) -> str:
        return self._timezone_name

    def now(self) -> datetime:
        """Current time in the reference timezone."""
        return datetime.now(self._tz)

    def resolve(self, value: str, reference: datetime | None = None) -> datetime:
        """Resolve *value* to an absolute timestamp.

        Args:
            value: ISO 8601 string or natural-language expression.
            reference: Anchor for relative expressions. Defaults to now.

        Returns:
            Timezone-aware datetime in the reference timezone.

        Raises:
            DateParseError: If neither strategy yields a timestamp.
        """
        if not value or not value.strip():
            raise DateParseError(value)

        reference = self._localize(reference or self.now())

        parsed = self._parse_iso(value.strip())
        if parsed is not None:
            return parsed

        parsed = self._parse_natural(value.strip(), reference)
        if parsed is not None:
            return parsed

        logger.debug(f"Unable to resolve time expression: {value!r}")
        raise DateParseError(value)

    def _localize(self, dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self._tz)
        return dt.astimezone(self._tz)

    def _parse_iso(self, value: str) -> datetime | None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            # Malformed, or not a real calendar date (e.g. 2025-02-30)
            return None
        return self._localize(parsed)

    def _parse_natural(self, value: str, reference: datetime) -> datetime | None:
        text = _WEEKDAY_QUALIFIER_RE.sub("", value)
        parsed = dateparser.parse(
            text,
            languages=["en"],
            settings={
                "PREFER_DATES_FROM": "future",
                # dateparser wants a naive wall-clock base in the target zone
                "RELATIVE_BASE": reference.replace(tzinfo=None),
                "TIMEZONE": self._timezone_name,
                "RETURN_AS_TIMEZONE_AWARE": False,
            },
        )
        if parsed is None:
            return None

        resolved = self._localize(parsed)

        # dateparser pushes the reference's own weekday a full week out even
        # when the requested time later that day is still ahead
        if _WEEKDAY_RE.search(text) and resolved - _WEEK > reference:
            resolved -= _WEEK

        logger.debug(f"Resolved {value!r} via natural-language parsing to {resolved.isoformat()}")
        return resolved
