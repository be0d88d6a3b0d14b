"""Reset-aware threshold tracking.

Turns periodic usage readings into a deduplicated stream of alert events.
Thresholds fire at most once per reset epoch of their window; the epoch
rolls over when the window reports a new reset time.
"""

import copy
import logging
from typing import Optional

from .config import (
    DEFAULT_FIVE_HOUR_THRESHOLDS,
    DEFAULT_WEEKLY_THRESHOLDS,
    normalize_thresholds,
)
from .state import AlertEvent, AlertState, UsageWindow, WindowKind

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = {
    WindowKind.FIVE_HOUR: normalize_thresholds(DEFAULT_FIVE_HOUR_THRESHOLDS),
    WindowKind.WEEKLY: normalize_thresholds(DEFAULT_WEEKLY_THRESHOLDS),
}


def thresholds_from_config(config: dict) -> dict:
    """Per-window threshold sets from the `thresholds` config section."""
    section = config.get("thresholds") or {}
    thresholds = {}
    for kind in WindowKind:
        values = section.get(kind.value)
        thresholds[kind] = normalize_thresholds(values) if values is not None else DEFAULT_THRESHOLDS[kind]
    return thresholds


def is_rollover(previous_reset: Optional[int], reset_at: Optional[int]) -> bool:
    """True when a window moved from one known reset epoch to another."""
    return previous_reset is not None and reset_at is not None and previous_reset != reset_at


def evaluate(
    state: AlertState,
    readings: dict,
    thresholds: Optional[dict] = None,
) -> tuple[AlertState, list[AlertEvent]]:
    """
    Decide which threshold alerts are newly due.

    Args:
        state: Dedup state from the previous cycle (not modified)
        readings: WindowKind -> UsageWindow; missing kinds are left untouched
        thresholds: WindowKind -> ascending thresholds, defaults if omitted

    Returns:
        (next_state, due_alerts) with alerts ordered by window then threshold
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    next_state = copy.deepcopy(state)
    due: list[AlertEvent] = []

    for kind in WindowKind:
        reading: Optional[UsageWindow] = readings.get(kind)
        if reading is None:
            continue

        window = next_state.window(kind)
        if is_rollover(window.reset_at, reading.reset_at):
            logger.info(
                f"{kind.label} window reset ({window.reset_at} -> {reading.reset_at}), "
                f"clearing {sorted(window.alerted_thresholds)}"
            )
            window.alerted_thresholds = set()

        for threshold in thresholds.get(kind, DEFAULT_THRESHOLDS[kind]):
            if reading.percent_used >= threshold and threshold not in window.alerted_thresholds:
                due.append(AlertEvent(
                    window=kind,
                    threshold=threshold,
                    reset_at=reading.reset_at,
                    percent_used=reading.percent_used,
                ))
                window.alerted_thresholds.add(threshold)

        window.reset_at = reading.reset_at

    return next_state, due
