"""Token resolution and the deduplicated auth-failure alert."""

import logging
from enum import Enum
from typing import Optional

from .credentials import CredentialProvider, Credentials
from .state import AlertState

logger = logging.getLogger(__name__)

REFRESH_LEAD_MS = 5 * 60 * 1000

AUTH_FAILED_MESSAGE = (
    "⚠️ <b>Claude Usage Monitor Auth Failed</b>\n\n"
    "Token missing/expired. Run <code>claude /login</code>."
)


class AuthStatus(Enum):
    HEALTHY = "healthy"
    AUTH_FAILING = "auth_failing"


def needs_refresh(creds: Optional[Credentials], now_ms: int) -> bool:
    """True when there is no token or it expires within the lead window."""
    if not creds or not creds.access_token:
        return True
    if creds.expires_at is None:
        return False
    return now_ms > creds.expires_at - REFRESH_LEAD_MS


def auth_status(state: AlertState) -> AuthStatus:
    return AuthStatus.AUTH_FAILING if state.auth_error_alerted else AuthStatus.HEALTHY


class AuthGate:
    """Resolves a bearer token, refreshing at most once per cycle."""

    def __init__(self, provider: CredentialProvider):
        self.provider = provider

    def resolve_token(self, now_ms: int) -> Optional[str]:
        creds = self.provider.resolve()

        if needs_refresh(creds, now_ms):
            logger.info("OAuth token missing or near expiry, attempting refresh")
            if self.provider.refresh():
                creds = self.provider.resolve()

        return creds.access_token if creds else None

    @staticmethod
    def record_failure(state: AlertState, now_ms: int) -> bool:
        """
        Move to AUTH_FAILING.

        Returns:
            True if this is the first failure of a streak and the alert is due
        """
        if auth_status(state) is AuthStatus.AUTH_FAILING:
            return False
        state.auth_error_alerted = True
        state.last_auth_error = now_ms
        logger.warning(f"Auth status {AuthStatus.HEALTHY.value} -> {auth_status(state).value}")
        return True

    @staticmethod
    def record_success(state: AlertState) -> bool:
        """Move back to HEALTHY. Returns True if a failure streak ended."""
        if auth_status(state) is AuthStatus.HEALTHY:
            return False
        state.auth_error_alerted = False
        state.last_auth_error = None
        logger.info(f"Auth status {AuthStatus.AUTH_FAILING.value} -> {auth_status(state).value}")
        return True
