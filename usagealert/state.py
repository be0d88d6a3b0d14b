"""Alert dedup state and its persisted record format."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class WindowKind(Enum):
    """Metered quota windows, in canonical evaluation order."""
    FIVE_HOUR = "five_hour"
    WEEKLY = "weekly"

    @property
    def label(self) -> str:
        return "5-Hour" if self is WindowKind.FIVE_HOUR else "Weekly"


# Record field names per window: (alerted list, reset epoch)
RECORD_FIELDS = {
    WindowKind.FIVE_HOUR: ("fiveHourAlerted", "fiveHourResetAt"),
    WindowKind.WEEKLY: ("weeklyAlerted", "weeklyResetAt"),
}


@dataclass
class UsageWindow:
    """One reading for a metered window."""
    percent_used: float
    reset_at: Optional[int] = None  # epoch millis


@dataclass
class WindowState:
    """Thresholds already notified for the current reset epoch."""
    alerted_thresholds: set = field(default_factory=set)
    reset_at: Optional[int] = None


@dataclass
class AlertEvent:
    """A threshold crossing that is due for delivery."""
    window: WindowKind
    threshold: float
    reset_at: Optional[int]
    percent_used: float


@dataclass
class AlertState:
    """Process-wide dedup state, persisted after every cycle."""
    windows: dict = field(default_factory=lambda: {kind: WindowState() for kind in WindowKind})
    auth_error_alerted: bool = False
    last_auth_error: Optional[int] = None
    last_check: int = 0

    def window(self, kind: WindowKind) -> WindowState:
        return self.windows.setdefault(kind, WindowState())

    def to_record(self) -> dict:
        """Serialize to the persisted record layout."""
        record = {}
        for kind, (alerted_key, reset_key) in RECORD_FIELDS.items():
            window = self.window(kind)
            record[alerted_key] = sorted(window.alerted_thresholds)
            record[reset_key] = window.reset_at
        record["lastCheck"] = self.last_check
        record["lastAuthError"] = self.last_auth_error
        record["authErrorAlerted"] = self.auth_error_alerted
        return record

    @classmethod
    def from_record(cls, record: dict) -> "AlertState":
        """Build state from a persisted record.

        Raises ValueError or TypeError if the record is malformed.
        """
        if not isinstance(record, dict):
            raise TypeError(f"Expected a JSON object, got {type(record).__name__}")

        state = cls()
        for kind, (alerted_key, reset_key) in RECORD_FIELDS.items():
            alerted = record.get(alerted_key) or []
            reset_at = record.get(reset_key)
            state.windows[kind] = WindowState(
                alerted_thresholds={_number(t) for t in alerted},
                reset_at=int(reset_at) if reset_at is not None else None,
            )
        state.last_check = int(record.get("lastCheck") or 0)
        last_auth_error = record.get("lastAuthError")
        state.last_auth_error = int(last_auth_error) if last_auth_error is not None else None
        state.auth_error_alerted = bool(record.get("authErrorAlerted", False))
        return state


def _number(value):
    """Keep integral thresholds as ints so 75 and 75.0 dedup together."""
    number = float(value)
    return int(number) if number.is_integer() else number
