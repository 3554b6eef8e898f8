"""Tests for ISO and natural-language date resolution."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from aida_bot.core.dates import DateParseError, DateResolver

KL = ZoneInfo("Asia/Kuala_Lumpur")

# Monday
MONDAY_MIDNIGHT = datetime(2025, 1, 6, 0, 0, tzinfo=KL)


@pytest.fixture
def resolver() -> DateResolver:
    return DateResolver("Asia/Kuala_Lumpur")


class TestIsoParsing:
    def test_iso_with_offset_returns_same_instant(self, resolver):
        result = resolver.resolve("2025-08-09T10:00:00+08:00", MONDAY_MIDNIGHT)
        assert result == datetime(2025, 8, 9, 10, 0, tzinfo=KL)
        assert result.utcoffset() == timedelta(hours=8)

    def test_zulu_suffix_is_converted_to_reference_zone(self, resolver):
        result = resolver.resolve("2025-08-09T02:00:00Z", MONDAY_MIDNIGHT)
        assert result.hour == 10
        assert result.utcoffset() == timedelta(hours=8)

    def test_naive_iso_is_interpreted_in_reference_zone(self, resolver):
        result = resolver.resolve("2025-08-09T10:00:00", MONDAY_MIDNIGHT)
        assert result == datetime(2025, 8, 9, 10, 0, tzinfo=KL)

    def test_surrounding_whitespace_is_ignored(self, resolver):
        result = resolver.resolve("  2025-08-09T10:00:00+08:00 ", MONDAY_MIDNIGHT)
        assert result == datetime(2025, 8, 9, 10, 0, tzinfo=KL)


class TestNaturalLanguage:
    def test_next_weekday_later_this_week(self, resolver):
        result = resolver.resolve("next Tuesday at 3pm", MONDAY_MIDNIGHT)
        assert result == datetime(2025, 1, 7, 15, 0, tzinfo=KL)

    def test_next_weekday_already_passed_rolls_to_following_week(self, resolver):
        wednesday = datetime(2025, 1, 8, 9, 0, tzinfo=KL)
        result = resolver.resolve("next Tuesday at 3pm", wednesday)
        assert result == datetime(2025, 1, 14, 15, 0, tzinfo=KL)

    def test_same_weekday_later_that_day(self, resolver):
        tuesday_morning = datetime(2025, 1, 7, 10, 0, tzinfo=KL)
        result = resolver.resolve("next Tuesday at 3pm", tuesday_morning)
        assert result == datetime(2025, 1, 7, 15, 0, tzinfo=KL)

    def test_same_weekday_time_already_passed(self, resolver):
        tuesday_afternoon = datetime(2025, 1, 7, 16, 0, tzinfo=KL)
        result = resolver.resolve("next Tuesday at 3pm", tuesday_afternoon)
        assert result == datetime(2025, 1, 14, 15, 0, tzinfo=KL)

    def test_tomorrow_is_relative_to_reference(self, resolver):
        result = resolver.resolve("tomorrow at 10am", MONDAY_MIDNIGHT)
        assert result.date() == datetime(2025, 1, 7).date()
        assert result.hour == 10

    def test_result_is_timezone_aware(self, resolver):
        result = resolver.resolve("Friday 2pm", MONDAY_MIDNIGHT)
        assert result.tzinfo is not None
        assert result.utcoffset() == timedelta(hours=8)


class TestFailures:
    def test_garbage_raises(self, resolver):
        with pytest.raises(DateParseError) as exc_info:
            resolver.resolve("not a date", MONDAY_MIDNIGHT)
        assert exc_info.value.value == "not a date"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_raises(self, resolver, value):
        with pytest.raises(DateParseError):
            resolver.resolve(value, MONDAY_MIDNIGHT)

    def test_parse_error_is_value_error(self, resolver):
        with pytest.raises(ValueError):
            resolver.resolve("not a date", MONDAY_MIDNIGHT)


def test_now_is_in_reference_zone(resolver):
    assert resolver.now().utcoffset() == timedelta(hours=8)
    assert resolver.timezone == "Asia/Kuala_Lumpur"
