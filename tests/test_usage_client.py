"""Tests for the usage API client and payload parsing."""

import io
import json
import urllib.error

import pytest

from usagealert import usage_client
from usagealert.errors import UpstreamError
from usagealert.state import UsageWindow, WindowKind
from usagealert.usage_client import UsageClient, parse_readings, round_percent, to_epoch_millis

from .conftest import usage_payload


class _Response(io.BytesIO):
    status = 200

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def test_fetch_sends_bearer_token(monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout):
        seen["req"] = req
        seen["timeout"] = timeout
        return _Response(json.dumps({"five_hour": {"utilization": 12}}).encode())

    monkeypatch.setattr(usage_client.urllib.request, "urlopen", fake_urlopen)

    data = UsageClient(timeout=7).fetch("tok")
    assert data == {"five_hour": {"utilization": 12}}
    assert seen["timeout"] == 7
    assert seen["req"].get_header("Authorization") == "Bearer tok"
    assert seen["req"].get_header("Anthropic-beta") == "oauth-2025-04-20"


def test_fetch_raises_upstream_error(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 429, "Too Many Requests", {}, io.BytesIO(b"slow down"))

    monkeypatch.setattr(usage_client.urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(UpstreamError) as exc_info:
        UsageClient().fetch("tok")
    assert exc_info.value.status == 429
    assert exc_info.value.body == "slow down"


def test_round_percent_rounds_half_up():
    assert round_percent(89.5) == 90
    assert round_percent(89.4) == 89
    assert round_percent(0.5) == 1
    assert round_percent(None) == 0
    assert round_percent(104.6) == 105


def test_to_epoch_millis():
    assert to_epoch_millis("2025-10-17T14:00:00Z") == 1_760_709_600_000
    assert to_epoch_millis("2025-10-17T16:00:00+02:00") == 1_760_709_600_000
    assert to_epoch_millis("2025-10-17T14:00:00.250000+00:00") == 1_760_709_600_250
    assert to_epoch_millis(None) is None
    assert to_epoch_millis("") is None


def test_parse_readings():
    readings = parse_readings(usage_payload(five_hour=74.6, weekly=12.2, weekly_reset=None))
    assert readings == {
        WindowKind.FIVE_HOUR: UsageWindow(75, 1_760_709_600_000),
        WindowKind.WEEKLY: UsageWindow(12, None),
    }


def test_parse_readings_skips_absent_windows():
    payload = usage_payload(five_hour=30)
    payload["seven_day"] = None
    assert list(parse_readings(payload)) == [WindowKind.FIVE_HOUR]
