"""Alert and status message text."""

import time
from datetime import datetime
from typing import Optional

import pytz

from .state import AlertEvent

DEFAULT_TIMEZONE = "Europe/Madrid"


def alert_emoji(threshold: float) -> str:
    if threshold >= 100:
        return "🔴"
    if threshold >= 95:
        return "🟠"
    if threshold >= 75:
        return "🟡"
    return "⚠️"


def format_relative(reset_at: int, now_ms: int) -> str:
    """Time until reset: 'now', '2d 3h', '4h 5m' or '12m'."""
    diff_ms = reset_at - now_ms
    if diff_ms <= 0:
        return "now"

    minutes = diff_ms // 60000
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def format_reset_time(
    reset_at: Optional[int],
    now_ms: Optional[int] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> Optional[tuple[str, str]]:
    """
    Absolute and relative reset time.

    Returns:
        ("Fri, Oct 17, 14:00", "in 2h 5m") or None without a reset time
    """
    if reset_at is None:
        return None
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    local = datetime.fromtimestamp(reset_at / 1000, tz=pytz.utc).astimezone(pytz.timezone(timezone))
    absolute = f"{local:%a}, {local:%b} {local.day}, {local:%H:%M}"

    relative = format_relative(reset_at, now_ms)
    if relative != "now":
        relative = f"in {relative}"
    return absolute, relative


def format_threshold_alert(
    event: AlertEvent,
    now_ms: Optional[int] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> str:
    reset = format_reset_time(event.reset_at, now_ms, timezone)
    reset_text = f"{reset[0]} ({reset[1]})" if reset else "?"
    return (
        f"{alert_emoji(event.threshold)} <b>{event.window.label} Usage: {event.percent_used}%</b>\n"
        f"Resets: {reset_text}"
    )


def format_usage_status(summary: dict) -> str:
    """Plain-text status lines for a usage summary."""
    lines = ["📊 Claude Usage"]
    for key, label in (("fiveHour", "5-Hour"), ("weekly", "Weekly"), ("opus", "Opus"), ("sonnet", "Sonnet")):
        window = summary.get(key)
        if not window:
            continue
        icon = "🔴" if window["percent"] >= 90 else "✅"
        reset_in = f" (resets in {window['resetIn']})" if window.get("resetIn") else ""
        lines.append(f"{icon} {label}: {window['percent']}%{reset_in}")

    extra = summary.get("extraUsage")
    if extra:
        used = (extra.get("used") or 0) / 100
        limit = (extra.get("limit") or 0) / 100
        lines.append(f"💳 Extra: ${used:.2f} / ${limit:.2f} ({extra['percent']}%)")

    return "\n".join(lines)
