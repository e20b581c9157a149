"""
Unit tests for the quota day boundary.
"""
import time
from datetime import datetime, timezone

import pytest

from mogumogu_api.core.timeutil import from_unix, quota_window_start


def test_quota_window_start_in_named_zone():
    # 10:00 in Tokyo on 2026-03-10
    now = datetime(2026, 3, 10, 1, 0, tzinfo=timezone.utc)
    start = quota_window_start(now=now, tz_name="Asia/Tokyo")
    assert start == datetime(2026, 3, 9, 15, 0)
    assert start.tzinfo is None


def test_quota_window_start_utc():
    now = datetime(2026, 3, 10, 23, 59, tzinfo=timezone.utc)
    assert quota_window_start(now=now, tz_name="UTC") == datetime(2026, 3, 10, 0, 0)


def test_from_unix():
    assert from_unix(None) is None
    assert from_unix(0) is None
    assert from_unix(1767225600) == datetime(2026, 1, 1, 0, 0)


def test_quota_window_start_named_zone_on_dst_change_day():
    # 14:00 EDT on 2026-03-08; midnight that day was still EST (UTC-5)
    now = datetime(2026, 3, 8, 18, 0, tzinfo=timezone.utc)
    assert quota_window_start(now=now, tz_name="America/New_York") == datetime(2026, 3, 8, 5, 0)


@pytest.fixture
def server_tz(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def _set(name):
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield _set
    monkeypatch.undo()
    time.tzset()


def test_quota_window_start_server_local_on_dst_change_day(server_tz):
    server_tz("EST5EDT,M3.2.0,M11.1.0")
    now = datetime(2026, 3, 8, 18, 0, tzinfo=timezone.utc)
    assert quota_window_start(now=now, tz_name="") == datetime(2026, 3, 8, 5, 0)


def test_quota_window_start_server_local_after_fall_back(server_tz):
    server_tz("EST5EDT,M3.2.0,M11.1.0")
    # 12:00 EST on 2026-11-01; midnight that day was still EDT (UTC-4)
    now = datetime(2026, 11, 1, 17, 0, tzinfo=timezone.utc)
    assert quota_window_start(now=now, tz_name="") == datetime(2026, 11, 1, 4, 0)
