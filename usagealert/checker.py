"""One usage alert check cycle."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .auth_gate import AUTH_FAILED_MESSAGE, AuthGate
from .credentials import CredentialProvider
from .errors import NoTokenError, UpstreamError
from .formatting import DEFAULT_TIMEZONE, format_threshold_alert
from .state import AlertEvent, WindowKind
from .state_store import StateStore
from .tracker import DEFAULT_THRESHOLDS, evaluate
from .usage_client import parse_readings

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """HTTP-style outcome of a check cycle."""
    status: int
    body: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _now_ms() -> int:
    return int(time.time() * 1000)


class UsageAlertChecker:
    """Fetches usage, decides which alerts are due and delivers them."""

    def __init__(
        self,
        credentials: CredentialProvider,
        usage_source,
        state_store: StateStore,
        notifier,
        thresholds: Optional[dict] = None,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Args:
            credentials: Resolves and refreshes the OAuth token
            usage_source: Object with fetch(token) -> usage payload
            state_store: Loads and saves AlertState
            notifier: Object with async deliver(message) -> bool
            thresholds: WindowKind -> ascending thresholds
            timezone: Zone used for reset times in alert text
            clock: Current time in epoch millis
        """
        self.auth = AuthGate(credentials)
        self.usage_source = usage_source
        self.state_store = state_store
        self.notifier = notifier
        self.thresholds = thresholds or DEFAULT_THRESHOLDS
        self.timezone = timezone
        self.clock = clock

    async def check(self) -> CheckResult:
        """Run one cycle. Never raises; failures become error results."""
        try:
            return await self._check()
        except NoTokenError as e:
            return CheckResult(401, {"error": str(e)})
        except UpstreamError as e:
            logger.error(f"Usage fetch failed with status {e.status}: {e.body or ''}")
            return CheckResult(e.status, {"error": "API error", "status": e.status})
        except Exception as e:
            logger.exception("Usage alert check failed")
            return CheckResult(500, {"error": str(e) or type(e).__name__})

    async def _send(self, message: str) -> bool:
        """Deliver one message; any failure counts as not sent."""
        try:
            return await self.notifier.deliver(message)
        except Exception:
            logger.exception("Alert delivery raised")
            return False

    async def _send_alert(self, alert: AlertEvent) -> bool:
        try:
            message = format_threshold_alert(alert, now_ms=self.clock(), timezone=self.timezone)
        except Exception:
            logger.exception(f"Could not format {alert.window.label} {alert.threshold}% alert")
            return False
        return await self._send(message)

    async def _check(self) -> CheckResult:
        state = self.state_store.load()
        now = self.clock()

        token = self.auth.resolve_token(now)
        if not token:
            if self.auth.record_failure(state, now):
                self.state_store.save(state)
                if not await self._send(AUTH_FAILED_MESSAGE):
                    logger.warning("Auth failure alert not delivered")
            raise NoTokenError()

        usage = self.usage_source.fetch(token)
        self.auth.record_success(state)

        readings = parse_readings(usage)
        state, alerts = evaluate(state, readings, self.thresholds)
        state.last_check = self.clock()
        self.state_store.save(state)

        sent = 0
        for alert in alerts:
            if await self._send_alert(alert):
                sent += 1
            else:
                logger.warning(f"Alert not delivered: {alert.window.label} {alert.threshold}%")

        logger.info(f"Usage checked: {len(alerts)} alerts triggered, {sent} sent")

        five_hour = readings.get(WindowKind.FIVE_HOUR)
        weekly = readings.get(WindowKind.WEEKLY)
        return CheckResult(200, {
            "checked": True,
            "fiveHourPercent": five_hour.percent_used if five_hour else 0,
            "weeklyPercent": weekly.percent_used if weekly else 0,
            "alertsTriggered": len(alerts),
            "alertsSent": sent,
            "timestamp": self.clock(),
        })
