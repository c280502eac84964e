"""
Unit tests for the in-memory reading repository.
"""

from datetime import datetime, timedelta, timezone

from src.data.repository import InMemoryReadingRepository


def test_query_recent_newest_first(reading_factory):
    t0 = datetime(2025, 2, 7, 10, 0, tzinfo=timezone.utc)
    repository = InMemoryReadingRepository()
    for minutes in (2, 0, 1):
        repository.append(reading_factory(timestamp=t0 + timedelta(minutes=minutes)))

    rows = repository.query_recent("REG-001", 2)
    assert [r.timestamp for r in rows] == [t0 + timedelta(minutes=2), t0 + timedelta(minutes=1)]
    assert repository.latest("REG-001").timestamp == t0 + timedelta(minutes=2)


def test_history_is_bounded(reading_factory):
    repository = InMemoryReadingRepository(max_per_device=3)
    for _ in range(5):
        repository.append(reading_factory())

    assert len(repository.query_recent("REG-001", 10)) == 3


def test_active_devices_sorted(reading_factory):
    repository = InMemoryReadingRepository()
    repository.append(reading_factory(device_id="REG-002"))
    repository.append(reading_factory(device_id="REG-001"))

    assert repository.active_device_ids() == ["REG-001", "REG-002"]
    assert repository.latest("REG-404") is None
