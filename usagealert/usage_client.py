"""Claude OAuth usage API client."""

import json
import logging
import math
import urllib.error
import urllib.request
from datetime import datetime
from typing import Optional

from .errors import UpstreamError
from .state import UsageWindow, WindowKind

logger = logging.getLogger(__name__)

# Payload keys for each tracked window
WINDOW_KEYS = {
    WindowKind.FIVE_HOUR: "five_hour",
    WindowKind.WEEKLY: "seven_day",
}


class UsageClient:
    """Fetches the raw usage payload for a bearer token."""

    API_URL = "https://api.anthropic.com/api/oauth/usage"
    BETA_HEADER = "oauth-2025-04-20"

    def __init__(self, api_url: str = API_URL, timeout: int = 10):
        self.api_url = api_url
        self.timeout = timeout

    def fetch(self, token: str) -> dict:
        """
        GET the usage payload.

        Raises:
            UpstreamError: if the API answers with a non-success status
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "anthropic-beta": self.BETA_HEADER,
            "Accept": "application/json",
        }
        req = urllib.request.Request(self.api_url, headers=headers, method="GET")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace") if e.fp else None
            logger.error(f"Usage API error {e.code}: {e.reason}")
            raise UpstreamError(e.code, body) from e


def round_percent(value) -> int:
    """Round half up, so 89.5 counts as 90."""
    return int(math.floor(float(value or 0) + 0.5))


def to_epoch_millis(timestamp: Optional[str]) -> Optional[int]:
    """Convert an ISO-8601 timestamp to epoch millis."""
    if not timestamp:
        return None
    parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    return int(parsed.timestamp() * 1000)


def parse_readings(usage: dict) -> dict:
    """Map a usage payload to WindowKind -> UsageWindow, skipping absent windows."""
    readings = {}
    for kind, key in WINDOW_KEYS.items():
        window = usage.get(key)
        if not window:
            continue
        readings[kind] = UsageWindow(
            percent_used=round_percent(window.get("utilization")),
            reset_at=to_epoch_millis(window.get("resets_at")),
        )
    return readings
