"""Tests for recurrence patterns."""

from datetime import date, datetime, timedelta

import pytest

from datebook.core.errors import RecurrenceError
from datebook.core.recurrence import RecurrencePattern, add_years, parse_weekdays


@pytest.fixture
def monday():
    # 2025-01-06 is a Monday
    return datetime(2025, 1, 6, 9, 0)


class TestParseWeekdays:
    def test_parses_all_codes(self):
        assert parse_weekdays("MTWRFSU") == frozenset(range(7))

    def test_thursday_and_sunday_codes(self):
        assert parse_weekdays("RU") == frozenset({3, 6})

    def test_duplicates_collapse(self):
        assert parse_weekdays("MMWM") == frozenset({0, 2})

    def test_invalid_character(self):
        with pytest.raises(RecurrenceError):
            parse_weekdays("MXF")

    def test_lowercase_is_invalid(self):
        with pytest.raises(RecurrenceError):
            parse_weekdays("mwf")

    def test_empty(self):
        with pytest.raises(RecurrenceError):
            parse_weekdays("")


class TestPatternConstruction:
    def test_count_sentinel_means_until(self):
        pattern = RecurrencePattern.parse("M", -1, date(2025, 2, 1))
        assert pattern.count is None
        assert pattern.until == date(2025, 2, 1)

    def test_until_datetime_stored_as_date(self):
        pattern = RecurrencePattern.parse("M", until=datetime(2025, 2, 1, 17, 30))
        assert pattern.until == date(2025, 2, 1)

    def test_needs_a_terminator(self):
        with pytest.raises(RecurrenceError):
            RecurrencePattern.parse("M", -1, None)

    def test_rejects_both_terminators(self):
        with pytest.raises(RecurrenceError):
            RecurrencePattern.parse("M", 3, date(2025, 2, 1))

    def test_rejects_zero_count(self):
        with pytest.raises(RecurrenceError):
            RecurrencePattern.parse("M", 0)

    def test_is_immutable(self):
        pattern = RecurrencePattern.parse("M", 3)
        with pytest.raises(AttributeError):
            pattern.count = 4

    def test_codes_are_canonical(self):
        assert RecurrencePattern.parse("FWM", 1).codes() == "MWF"
        assert RecurrencePattern.parse("UR", 1).codes() == "RU"

    def test_with_count_drops_until(self):
        pattern = RecurrencePattern.parse("M", until=date(2025, 3, 1)).with_count(2)
        assert pattern.count == 2
        assert pattern.until is None

    def test_shifted_rotates_weekdays(self):
        pattern = RecurrencePattern.parse("MU", 1)
        assert pattern.shifted(1).codes() == "MT"
        assert pattern.shifted(-1).codes() == "SU"
        assert pattern.shifted(7) is pattern

    def test_describe(self):
        assert RecurrencePattern.parse("MW", 4).describe() == "Repeats on: Mon,Wed for 4 times"
        assert (
            RecurrencePattern.parse("F", until=date(2025, 3, 1)).describe()
            == "Repeats on: Fri until 2025-03-01"
        )


class TestCalculateRecurrences:
    def test_mwf_six_times(self, monday):
        pattern = RecurrencePattern.parse("MWF", 6, None)
        dates = pattern.calculate_recurrences(monday)

        assert len(dates) == 6
        assert dates[0] == monday
        assert [d.weekday() for d in dates] == [0, 2, 4, 0, 2, 4]
        assert all(d.time() == monday.time() for d in dates)
        gaps = {(b - a).days for a, b in zip(dates, dates[1:])}
        assert gaps <= {2, 3}

    def test_is_idempotent(self, monday):
        pattern = RecurrencePattern.parse("MWF", 6)
        assert pattern.calculate_recurrences(monday) == pattern.calculate_recurrences(monday)

    def test_anchor_off_pattern_is_skipped(self, monday):
        dates = RecurrencePattern.parse("T", 2).calculate_recurrences(monday)
        assert dates == [datetime(2025, 1, 7, 9, 0), datetime(2025, 1, 14, 9, 0)]

    def test_until_is_inclusive(self, monday):
        dates = RecurrencePattern.parse("M", until=date(2025, 1, 20)).calculate_recurrences(monday)
        assert [d.date() for d in dates] == [date(2025, 1, 6), date(2025, 1, 13), date(2025, 1, 20)]

    def test_until_before_anchor_is_empty(self, monday):
        pattern = RecurrencePattern.parse("M", until=date(2025, 1, 1))
        assert pattern.calculate_recurrences(monday) == []

    def test_far_until_stops_at_horizon(self):
        anchor = datetime(2025, 1, 1, 8, 0)
        pattern = RecurrencePattern.parse("MTWRFSU", until=date(2040, 1, 1))
        dates = pattern.calculate_recurrences(anchor)

        assert dates[-1].date() == date(2030, 1, 1)
        assert len(dates) == (date(2030, 1, 1) - date(2025, 1, 1)).days + 1

    def test_horizon_is_configurable(self):
        anchor = datetime(2025, 1, 1, 8, 0)
        pattern = RecurrencePattern.parse("W", until=date(2040, 1, 1))
        dates = pattern.calculate_recurrences(anchor, horizon_years=1)
        assert dates[-1].date() <= date(2026, 1, 1)
        assert dates[-1].date() > date(2026, 1, 1) - timedelta(days=7)


class TestAddYears:
    def test_regular_date(self):
        assert add_years(date(2025, 3, 10), 5) == date(2030, 3, 10)

    def test_leap_day(self):
        assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
