"""Dashboard summary of a usage payload."""

import time
from typing import Optional

from .formatting import format_relative
from .usage_client import round_percent, to_epoch_millis


def _reset_in(resets_at: Optional[str], now_ms: int) -> Optional[str]:
    reset_at = to_epoch_millis(resets_at)
    return format_relative(reset_at, now_ms) if reset_at is not None else None


def _window(window: Optional[dict], now_ms: int) -> dict:
    window = window or {}
    return {
        "percent": round_percent(window.get("utilization")),
        "resetIn": _reset_in(window.get("resets_at"), now_ms),
        "resetAt": to_epoch_millis(window.get("resets_at")),
    }


def _model_window(window: Optional[dict], now_ms: int) -> Optional[dict]:
    if not window:
        return None
    return {
        "percent": round_percent(window.get("utilization")),
        "resetIn": _reset_in(window.get("resets_at"), now_ms),
    }


def build_usage_summary(usage: dict, now_ms: Optional[int] = None) -> dict:
    """Shape a raw usage payload for display."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    extra = usage.get("extra_usage") or {}
    extra_usage = None
    if extra.get("is_enabled"):
        extra_usage = {
            "used": extra.get("used_credits"),
            "limit": extra.get("monthly_limit"),
            "percent": round_percent(extra.get("utilization")),
        }

    return {
        "fiveHour": _window(usage.get("five_hour"), now_ms),
        "weekly": _window(usage.get("seven_day"), now_ms),
        "opus": _model_window(usage.get("seven_day_opus"), now_ms),
        "sonnet": _model_window(usage.get("seven_day_sonnet"), now_ms),
        "extraUsage": extra_usage,
        "timestamp": now_ms,
        "source": "live",
    }
