"""Persistence for alert dedup state."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from .state import AlertState

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path.home() / ".openclaw" / "control-center" / "usage-alerts.json"


class StateStore(Protocol):
    def load(self) -> AlertState: ...

    def save(self, state: AlertState) -> None: ...


class JsonStateStore:
    """Stores alert state as a JSON record on disk."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_STATE_FILE

    def load(self) -> AlertState:
        """Load state, falling back to a fresh state if missing or corrupt."""
        if not self.path.exists():
            logger.info(f"No alert state at {self.path}, starting fresh")
            return AlertState()

        try:
            with open(self.path, "r") as f:
                record = json.load(f)
            return AlertState.from_record(record)
        except (OSError, ValueError, TypeError, OverflowError) as e:
            logger.warning(f"Ignoring unreadable alert state {self.path}: {e}")
            return AlertState()

    def save(self, state: AlertState) -> None:
        """Write the full record, replacing the previous file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".usage-alerts-")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(state.to_record(), f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise


class MemoryStateStore:
    """Keeps the persisted record in memory."""

    def __init__(self, state: Optional[AlertState] = None):
        self.record: Optional[dict] = state.to_record() if state else None
        self.saves = 0

    def load(self) -> AlertState:
        if self.record is None:
            return AlertState()
        return AlertState.from_record(self.record)

    def save(self, state: AlertState) -> None:
        self.record = state.to_record()
        self.saves += 1
