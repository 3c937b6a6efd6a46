"""Recurrence rule expansion into concrete occurrence dates."""

from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from ..value_objects.recurrence_rule import RecurrenceFrequency, RecurrenceRule
from ..value_objects.scheduling_config import SchedulingConfig
from ..value_objects.scheduling_result import SchedulingErrorKind, SchedulingResult

# Shortest possible distance between two occurrences one interval apart
MIN_STEP_DAYS = {
    RecurrenceFrequency.DAILY: 1,
    RecurrenceFrequency.WEEKLY: 7,
    RecurrenceFrequency.MONTHLY: 28,
}


class RecurrenceExpander:
    """Service expanding a ``RecurrenceRule`` from a start date.

    The range ends at the rule's inclusive ``end_date``, or at the configured
    default horizon after the start date when no end date is given. Either
    way the range never extends past the larger of the advance-booking and
    recurrence horizons. A ``count`` then caps the number of occurrences
    inside that range.

    Weekly rules honor ``interval``: weeks are numbered from the Monday of
    the start date's week and only every ``interval``-th week produces
    occurrences.
    """

    def __init__(self, config: Optional[SchedulingConfig] = None):
        self._config = config or SchedulingConfig()

    def validate_rule(self, rule: RecurrenceRule, start_date: date) -> SchedulingResult[RecurrenceRule]:
        """Check that a rule can be expanded from ``start_date``."""
        if rule is None or rule.frequency is None:
            return SchedulingResult.fail(SchedulingErrorKind.RECURRENCE_MISCONFIGURED, "Recurrence frequency is required")
        if not isinstance(rule.frequency, RecurrenceFrequency):
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                f"Unsupported recurrence frequency: {rule.frequency!r}"
            )
        if rule.interval is None or rule.interval < 1:
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                "Recurrence interval must be a positive integer",
                interval=rule.interval
            )
        if rule.interval * MIN_STEP_DAYS[rule.frequency] > self._max_span_days:
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                f"Recurrence interval reaches past the {self._max_span_days} day booking range",
                interval=rule.interval
            )
        if rule.count is not None and rule.count < 1:
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                "Recurrence count must be at least 1",
                count=rule.count
            )
        if rule.end_date is not None and rule.end_date < start_date:
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                "Recurrence end date is before the start date",
                end_date=rule.end_date.isoformat()
            )
        if rule.end_date is not None and rule.end_date > self.range_limit(start_date):
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                f"Recurrence end date is more than {self._max_span_days} days after the start date",
                end_date=rule.end_date.isoformat()
            )
        if any(not 0 <= weekday <= 6 for weekday in rule.weekdays):
            return SchedulingResult.fail(
                SchedulingErrorKind.RECURRENCE_MISCONFIGURED,
                "Weekdays must be between 0 (Monday) and 6 (Sunday)",
                weekdays=sorted(rule.weekdays)
            )
        return SchedulingResult.ok(rule)

    def expand(self, start_date: date, rule: RecurrenceRule) -> SchedulingResult[List[date]]:
        """Expand ``rule`` into strictly increasing occurrence dates."""
        validation = self.validate_rule(rule, start_date)
        if not validation.success:
            return SchedulingResult(success=False, error=validation.error)

        end_date = min(
            rule.end_date or _add_days(start_date, self._config.default_recurrence_horizon_days),
            self.range_limit(start_date)
        )

        if rule.frequency is RecurrenceFrequency.DAILY:
            dates = self._expand_daily(start_date, end_date, rule)
        elif rule.frequency is RecurrenceFrequency.WEEKLY:
            dates = self._expand_weekly(start_date, end_date, rule)
        else:
            dates = self._expand_monthly(start_date, end_date, rule)

        return SchedulingResult.ok(dates)

    def range_limit(self, start_date: date) -> date:
        """Get the last date any rule starting on ``start_date`` may reach."""
        return _add_days(start_date, self._max_span_days)

    @property
    def _max_span_days(self) -> int:
        return max(self._config.max_advance_booking_days, self._config.default_recurrence_horizon_days)

    def _expand_daily(self, start_date: date, end_date: date, rule: RecurrenceRule) -> List[date]:
        dates = []
        current = start_date
        while current is not None and current <= end_date and not self._reached(dates, rule):
            dates.append(current)
            current = _advance(current, timedelta(days=rule.interval))
        return dates

    def _expand_weekly(self, start_date: date, end_date: date, rule: RecurrenceRule) -> List[date]:
        weekdays = rule.weekdays or frozenset({start_date.weekday()})
        anchor = start_date - timedelta(days=start_date.weekday())

        dates = []
        current = start_date
        while current is not None and current <= end_date and not self._reached(dates, rule):
            week_number = (current - anchor).days // 7
            if week_number % rule.interval == 0 and current.weekday() in weekdays:
                dates.append(current)
            current = _advance(current, timedelta(days=1))
        return dates

    def _expand_monthly(self, start_date: date, end_date: date, rule: RecurrenceRule) -> List[date]:
        # Each step advances from the previous occurrence, so a day-of-month
        # clamped at a short month stays clamped.
        dates = []
        current = start_date
        while current is not None and current <= end_date and not self._reached(dates, rule):
            dates.append(current)
            current = _advance(current, relativedelta(months=rule.interval))
        return dates

    @staticmethod
    def _reached(dates: List[date], rule: RecurrenceRule) -> bool:
        return rule.count is not None and len(dates) >= rule.count


def _add_days(day: date, days: int) -> date:
    """Add days, saturating at ``date.max``."""
    if (date.max - day).days <= days:
        return date.max
    return day + timedelta(days=days)


def _advance(day: date, step) -> Optional[date]:
    """Step a date forward, or ``None`` past the end of the calendar."""
    try:
        return day + step
    except (OverflowError, ValueError):
        return None
