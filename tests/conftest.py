"""Fakes for the collaborators of a check cycle."""

import pytest

from usagealert.credentials import Credentials
from usagealert.errors import UpstreamError
from usagealert.state_store import MemoryStateStore

NOW = 1_760_702_400_000  # 2025-10-17T12:00:00Z


class FakeCredentials:
    def __init__(self, token="sk-ant-oat01-test", expires_at=None, refreshed=None, refresh_ok=True):
        self.creds = Credentials(token, expires_at) if token else None
        self.refreshed = refreshed
        self.refresh_ok = refresh_ok
        self.resolve_calls = 0
        self.refresh_calls = 0

    def resolve(self):
        self.resolve_calls += 1
        return self.creds

    def refresh(self):
        self.refresh_calls += 1
        if self.refresh_ok and self.refreshed is not None:
            self.creds = self.refreshed
        return self.refresh_ok


class FakeUsageSource:
    def __init__(self, payload=None, status=None, body=None):
        self.payload = payload or {}
        self.status = status
        self.body = body
        self.tokens = []

    def fetch(self, token):
        self.tokens.append(token)
        if self.status:
            raise UpstreamError(self.status, self.body)
        return self.payload


class FakeNotifier:
    def __init__(self, ok=True):
        self.ok = ok
        self.messages = []

    async def deliver(self, message):
        self.messages.append(message)
        return self.ok


def usage_payload(five_hour=None, weekly=None, five_hour_reset="2025-10-17T14:00:00+00:00",
                  weekly_reset="2025-10-20T08:00:00+00:00"):
    payload = {}
    if five_hour is not None:
        payload["five_hour"] = {"utilization": five_hour, "resets_at": five_hour_reset}
    if weekly is not None:
        payload["seven_day"] = {"utilization": weekly, "resets_at": weekly_reset}
    return payload


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def notifier():
    return FakeNotifier()
