"""Recurrence rule value object."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, Optional


class RecurrenceFrequency(Enum):
    """Recurrence frequency enumeration."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class RecurrenceRule:
    """Compact description of a repeating appointment.

    ``weekdays`` uses ``date.weekday()`` indices (0 = Monday) and only applies
    to weekly rules. Termination is by ``count``, by inclusive ``end_date``,
    or both; with neither the expander falls back to its default horizon.
    Misconfiguration is reported by the expander rather than raised here.
    """

    frequency: Optional[RecurrenceFrequency]
    interval: int = 1
    weekdays: FrozenSet[int] = field(default_factory=frozenset)
    count: Optional[int] = None
    end_date: Optional[date] = None

    @property
    def has_termination(self) -> bool:
        """Check if the rule carries an explicit termination condition."""
        return self.count is not None or self.end_date is not None

    def describe(self) -> str:
        """Get a human-readable summary of the rule."""
        if self.frequency is None:
            return "no recurrence"

        unit = {
            RecurrenceFrequency.DAILY: "day",
            RecurrenceFrequency.WEEKLY: "week",
            RecurrenceFrequency.MONTHLY: "month",
        }[self.frequency]
        summary = f"every {unit}" if self.interval == 1 else f"every {self.interval} {unit}s"

        if self.frequency is RecurrenceFrequency.WEEKLY and self.weekdays:
            days = ", ".join(WEEKDAY_NAMES[d] for d in sorted(self.weekdays) if 0 <= d <= 6)
            summary += f" on {days}"
        if self.count is not None:
            summary += f", {self.count} times"
        if self.end_date is not None:
            summary += f", until {self.end_date.isoformat()}"
        return summary
