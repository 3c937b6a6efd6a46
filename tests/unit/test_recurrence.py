"""Unit tests for recurrence rule expansion."""

import pytest
from datetime import date

from trainer_scheduling.domain.services.recurrence import RecurrenceExpander
from trainer_scheduling.domain.value_objects.recurrence_rule import RecurrenceFrequency, RecurrenceRule
from trainer_scheduling.domain.value_objects.scheduling_config import SchedulingConfig
from trainer_scheduling.domain.value_objects.scheduling_result import SchedulingErrorKind

MONDAY = date(2030, 1, 7)
MON, WED, FRI = 0, 2, 4


def expand(start: date, rule: RecurrenceRule, config: SchedulingConfig = None):
    result = RecurrenceExpander(config).expand(start, rule)
    assert result.success, result.error
    return result.value


class TestWeeklyRecurrence:
    """Test cases for weekly rules."""

    def test_mon_wed_fri_six_occurrences(self):
        """Test Mon/Wed/Fri from a Monday with count 6 spans two weeks."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, weekdays=frozenset({MON, WED, FRI}), count=6)

        dates = expand(MONDAY, rule)

        assert dates == [
            date(2030, 1, 7), date(2030, 1, 9), date(2030, 1, 11),
            date(2030, 1, 14), date(2030, 1, 16), date(2030, 1, 18),
        ]
        assert [d.weekday() for d in dates] == [MON, WED, FRI, MON, WED, FRI]

    def test_defaults_to_start_weekday(self):
        """Test that an empty weekday set repeats on the start's weekday."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, count=3)

        assert expand(date(2030, 1, 9), rule) == [date(2030, 1, 9), date(2030, 1, 16), date(2030, 1, 23)]

    def test_start_mid_week_skips_earlier_weekdays(self):
        """Test that weekdays before the start date are not generated."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, weekdays=frozenset({MON, FRI}), count=3)

        assert expand(date(2030, 1, 9), rule) == [date(2030, 1, 11), date(2030, 1, 14), date(2030, 1, 18)]

    def test_weekly_interval_skips_weeks(self):
        """Test that interval 2 produces every other week."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, interval=2, weekdays=frozenset({MON}), count=3)

        assert expand(MONDAY, rule) == [date(2030, 1, 7), date(2030, 1, 21), date(2030, 2, 4)]


class TestDailyAndMonthlyRecurrence:
    """Test cases for daily and monthly rules."""

    def test_daily_with_end_date(self):
        """Test that the end date is inclusive."""
        rule = RecurrenceRule(RecurrenceFrequency.DAILY, end_date=date(2030, 1, 10))

        assert expand(MONDAY, rule) == [date(2030, 1, 7), date(2030, 1, 8), date(2030, 1, 9), date(2030, 1, 10)]

    def test_daily_interval(self):
        """Test every third day."""
        rule = RecurrenceRule(RecurrenceFrequency.DAILY, interval=3, count=3)

        assert expand(MONDAY, rule) == [date(2030, 1, 7), date(2030, 1, 10), date(2030, 1, 13)]

    def test_count_caps_occurrences(self):
        """Test that count bounds the expansion even with a later end date."""
        rule = RecurrenceRule(RecurrenceFrequency.DAILY, count=5, end_date=date(2030, 3, 1))

        assert len(expand(MONDAY, rule)) == 5

    def test_end_date_caps_count(self):
        """Test that the end date wins when it comes first."""
        rule = RecurrenceRule(RecurrenceFrequency.DAILY, count=10, end_date=date(2030, 1, 8))

        assert len(expand(MONDAY, rule)) == 2

    def test_default_horizon(self):
        """Test that unterminated rules stop at the configured horizon."""
        config = SchedulingConfig(default_recurrence_horizon_days=30)
        rule = RecurrenceRule(RecurrenceFrequency.DAILY)

        dates = expand(MONDAY, rule, config)

        assert len(dates) == 31
        assert dates[-1] == date(2030, 2, 6)

    def test_monthly_clamps_cumulatively(self):
        """Test that a clamped day-of-month stays clamped."""
        rule = RecurrenceRule(RecurrenceFrequency.MONTHLY, count=3)

        assert expand(date(2030, 1, 31), rule) == [date(2030, 1, 31), date(2030, 2, 28), date(2030, 3, 28)]

    def test_dates_strictly_increase(self):
        """Test that occurrences are strictly increasing."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, weekdays=frozenset({MON, WED, FRI}), count=12)

        dates = expand(MONDAY, rule)

        assert all(a < b for a, b in zip(dates, dates[1:]))


class TestMisconfiguredRules:
    """Test cases for rule validation."""

    @pytest.mark.parametrize("rule", [
        RecurrenceRule(None, count=3),
        RecurrenceRule(RecurrenceFrequency.DAILY, interval=0),
        RecurrenceRule(RecurrenceFrequency.DAILY, count=0),
        RecurrenceRule(RecurrenceFrequency.DAILY, end_date=date(2030, 1, 1)),
        RecurrenceRule(RecurrenceFrequency.WEEKLY, weekdays=frozenset({7})),
        RecurrenceRule("yearly", count=2),
    ])
    def test_misconfigured(self, rule):
        """Test that invalid rules are reported, not raised."""
        result = RecurrenceExpander().expand(MONDAY, rule)

        assert result.success is False
        assert result.error_kind == SchedulingErrorKind.RECURRENCE_MISCONFIGURED

    @pytest.mark.parametrize("rule", [
        RecurrenceRule(RecurrenceFrequency.DAILY, interval=3_000_000, count=2),
        RecurrenceRule(RecurrenceFrequency.WEEKLY, interval=14, count=2),
        RecurrenceRule(RecurrenceFrequency.MONTHLY, interval=4, count=2),
    ])
    def test_interval_beyond_booking_range(self, rule):
        """Test that an interval stepping past the booking range is rejected."""
        result = RecurrenceExpander().expand(MONDAY, rule)

        assert result.error_kind == SchedulingErrorKind.RECURRENCE_MISCONFIGURED
        assert result.error.details["interval"] == rule.interval

    def test_end_date_beyond_booking_range(self):
        """Test that an end date far in the future is rejected instead of expanded."""
        rule = RecurrenceRule(RecurrenceFrequency.DAILY, end_date=date(9999, 12, 31))

        result = RecurrenceExpander().expand(MONDAY, rule)

        assert result.error_kind == SchedulingErrorKind.RECURRENCE_MISCONFIGURED
        assert result.error.details["end_date"] == "9999-12-31"

    def test_end_date_at_booking_range(self):
        """Test that the last day of the booking range is still accepted."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, end_date=date(2030, 4, 7))

        dates = expand(MONDAY, rule)

        assert dates[-1] == date(2030, 4, 1)
        assert len(dates) == 13

    def test_start_near_end_of_calendar(self):
        """Test that expansion stops at the last representable date."""
        rule = RecurrenceRule(RecurrenceFrequency.MONTHLY, count=3)

        dates = expand(date(9999, 12, 15), rule)

        assert dates == [date(9999, 12, 15)]

    def test_describe(self):
        """Test the human-readable summary."""
        rule = RecurrenceRule(RecurrenceFrequency.WEEKLY, interval=2, weekdays=frozenset({MON, FRI}), count=4)

        assert rule.describe() == "every 2 weeks on Monday, Friday, 4 times"
