"""Tests for TimeValue normalization, conversion and formatting."""

from datetime import timedelta

import pytest

from onyx.core.time_value import (
    DEFAULT_DURATION,
    InvalidDurationError,
    TimeValue,
    format_compact,
    format_full,
    parse_time_text,
)

# ---------------------------------------------------------------------------
# normalize()
# ---------------------------------------------------------------------------


class TestNormalize:
    """normalize() carries overflow upward and saturates at 99:59:59."""

    def test_in_range_values_are_kept(self) -> None:
        assert TimeValue.normalize(1, 2, 3) == TimeValue(1, 2, 3)

    def test_seconds_carry_into_minutes(self) -> None:
        assert TimeValue.normalize(0, 0, 125) == TimeValue(0, 2, 5)

    def test_minutes_carry_into_hours(self) -> None:
        assert TimeValue.normalize(0, 125, 0) == TimeValue(2, 5, 0)

    def test_cascading_carry(self) -> None:
        """3599 + 1 seconds carry all the way into hours."""
        assert TimeValue.normalize(0, 59, 60) == TimeValue(1, 0, 0)

    def test_hours_over_99_saturate(self) -> None:
        assert TimeValue.normalize(150, 0, 0) == TimeValue(99, 59, 59)

    def test_carry_past_99_hours_saturates(self) -> None:
        assert TimeValue.normalize(99, 60, 0) == TimeValue(99, 59, 59)

    def test_exactly_99_59_59_is_not_saturated(self) -> None:
        assert TimeValue.normalize(99, 59, 59) == TimeValue(99, 59, 59)

    @pytest.mark.parametrize(
        ("hours", "minutes", "seconds"),
        [(-1, 0, 0), (0, -1, 0), (0, 0, -1)],
    )
    def test_negative_component_raises(self, hours: int, minutes: int, seconds: int) -> None:
        with pytest.raises(InvalidDurationError):
            TimeValue.normalize(hours, minutes, seconds)

    def test_invalid_duration_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            TimeValue.normalize(0, 0, -5)

    def test_components_always_in_range(self) -> None:
        """Every input in [0, 200]^3 lands in range and matches the carried value."""
        for hours in range(0, 201, 7):
            for minutes in range(0, 201, 13):
                for seconds in range(0, 201, 11):
                    value = TimeValue.normalize(hours, minutes, seconds)
                    assert 0 <= value.hours <= 99
                    assert 0 <= value.minutes <= 59
                    assert 0 <= value.seconds <= 59
                    total = hours * 3600 + minutes * 60 + seconds
                    if total // 3600 > 99:
                        assert value == TimeValue(99, 59, 59)
                    else:
                        assert value.to_total_seconds() == total


# ---------------------------------------------------------------------------
# Direct construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_default_is_zero(self) -> None:
        assert TimeValue().is_zero()

    def test_out_of_range_component_raises(self) -> None:
        with pytest.raises(InvalidDurationError):
            TimeValue(0, 60, 0)

    def test_value_is_immutable(self) -> None:
        value = TimeValue(0, 1, 0)
        with pytest.raises(AttributeError):
            value.seconds = 5  # type: ignore[misc]

    def test_structural_equality(self) -> None:
        assert TimeValue(1, 2, 3) == TimeValue(1, 2, 3)
        assert TimeValue(1, 2, 3) != TimeValue(1, 2, 4)

    def test_default_duration(self) -> None:
        assert DEFAULT_DURATION == TimeValue(0, 3, 5)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


class TestConversions:
    def test_to_total_seconds(self) -> None:
        assert TimeValue(1, 2, 3).to_total_seconds() == 3723

    def test_from_total_seconds(self) -> None:
        assert TimeValue.from_total_seconds(3723) == TimeValue(1, 2, 3)

    def test_to_timedelta(self) -> None:
        assert TimeValue(1, 0, 0).to_timedelta() == timedelta(hours=1)

    def test_from_timedelta(self) -> None:
        assert TimeValue.from_timedelta(timedelta(minutes=90)) == TimeValue(1, 30, 0)


# ---------------------------------------------------------------------------
# Formatting and parsing
# ---------------------------------------------------------------------------


class TestFormatting:
    """format_compact() drops leading zero units; format_full() never does."""

    def test_compact_with_hours(self) -> None:
        assert format_compact(TimeValue(1, 2, 3)) == "01:02:03"

    def test_compact_with_minutes(self) -> None:
        assert format_compact(TimeValue(0, 2, 3)) == "02:03"

    def test_compact_seconds_only(self) -> None:
        assert format_compact(TimeValue(0, 0, 7)) == "7"

    def test_compact_zero(self) -> None:
        assert format_compact(TimeValue()) == "0"

    def test_compact_hours_with_zero_minutes(self) -> None:
        assert format_compact(TimeValue(2, 0, 5)) == "02:00:05"

    def test_full(self) -> None:
        assert format_full(TimeValue(0, 0, 7)) == "00:00:07"


class TestParseTimeText:
    def test_parses_hh_mm_ss(self) -> None:
        assert parse_time_text("01:30:00") == TimeValue(1, 30, 0)

    def test_clamps_fields(self) -> None:
        assert parse_time_text("00:75:99") == TimeValue(0, 59, 59)

    @pytest.mark.parametrize("text", ["", "1:30:00", "01:30", "aa:bb:cc", None])
    def test_rejects_malformed_text(self, text: str | None) -> None:
        assert parse_time_text(text) is None
