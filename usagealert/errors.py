"""Failures raised inside an alert check cycle."""

from typing import Optional


class UsageAlertError(Exception):
    """Base class for alert check failures."""


class NoTokenError(UsageAlertError):
    """No OAuth token could be resolved, even after a refresh attempt."""

    def __init__(self, message: str = "No OAuth token found"):
        super().__init__(message)


class UpstreamError(UsageAlertError):
    """The usage API answered with a non-success status."""

    def __init__(self, status: int, body: Optional[str] = None):
        super().__init__(f"API error: {status}")
        self.status = status
        self.body = body
