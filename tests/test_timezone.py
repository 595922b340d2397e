# tests/test_timezone.py

from datetime import datetime, timezone

from smartqueue.utils.timezone import ensure_utc, utcnow


def test_utcnow_is_aware():
    assert utcnow().tzinfo is timezone.utc


def test_ensure_utc_tags_naive_values():
    naive = datetime(2025, 1, 1, 12, 0)

    assert ensure_utc(naive) == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_ensure_utc_keeps_aware_values():
    aware = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    assert ensure_utc(aware) is aware
