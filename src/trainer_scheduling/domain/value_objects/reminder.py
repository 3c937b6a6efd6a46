"""Reminder value object attached to appointments."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ReminderKind(Enum):
    """Reminder delivery channel."""
    EMAIL = "email"
    PUSH = "push"


@dataclass
class Reminder:
    """A reminder scheduled relative to an appointment start."""

    kind: ReminderKind
    offset_minutes: int
    scheduled_for: datetime
    sent: bool = False
    sent_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        """Validate reminder data."""
        if not isinstance(self.kind, ReminderKind):
            raise ValueError("kind must be a ReminderKind enum")
        if self.offset_minutes <= 0:
            raise ValueError("Reminder offset must be positive")

    def is_due(self, now: datetime) -> bool:
        """Check if the reminder should be dispatched at ``now``."""
        return not self.sent and self.scheduled_for <= now

    def mark_sent(self, now: datetime) -> None:
        """Mark the reminder as dispatched."""
        self.sent = True
        self.sent_at = now

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON storage."""
        return {
            "kind": self.kind.value,
            "offset_minutes": self.offset_minutes,
            "scheduled_for": self.scheduled_for.isoformat(),
            "sent": self.sent,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reminder":
        """Deserialize from JSON storage."""
        sent_at = data.get("sent_at")
        return cls(
            kind=ReminderKind(data["kind"]),
            offset_minutes=int(data["offset_minutes"]),
            scheduled_for=datetime.fromisoformat(data["scheduled_for"]),
            sent=bool(data.get("sent", False)),
            sent_at=datetime.fromisoformat(sent_at) if sent_at else None,
        )
