from datetime import datetime, timezone

import pytest

from snakelink.domain.models import GeneralConfig
from snakelink.domain.status import effective_range, evaluate, is_day_hour, is_stale

from conftest import make_reading, make_spec

UTC_GENERAL = GeneralConfig(timezone="UTC", dayStartHour=8, nightStartHour=20)


def at_hour(hour: int) -> datetime:
    return datetime(2024, 6, 1, hour, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, expected",
    [
        (19.9, "warning"),
        (20.0, "ok"),
        (25.0, "ok"),
        (30.0, "ok"),
        (30.1, "warning"),
    ],
)
def test_flat_limits(value, expected):
    spec = make_spec()
    assert evaluate(spec, make_reading(spec, value), UTC_GENERAL) == expected


def test_missing_reading_or_value_is_unknown():
    spec = make_spec()
    assert evaluate(spec, None, UTC_GENERAL) == "unknown"
    assert evaluate(spec, make_reading(spec, None), UTC_GENERAL) == "unknown"


def test_absent_bound_is_open():
    only_min = make_spec(limits={"kind": "general", "min": 10})
    only_max = make_spec(limits={"kind": "general", "max": 10})

    assert evaluate(only_min, make_reading(only_min, 1e6), UTC_GENERAL) == "ok"
    assert evaluate(only_min, make_reading(only_min, 9), UTC_GENERAL) == "warning"
    assert evaluate(only_max, make_reading(only_max, -1e6), UTC_GENERAL) == "ok"
    assert evaluate(only_max, make_reading(only_max, 11), UTC_GENERAL) == "warning"


def test_no_bounds_is_unknown():
    spec = make_spec(limits={"kind": "general"})
    assert evaluate(spec, make_reading(spec, 25), UTC_GENERAL) == "unknown"


def test_water_presence_ignores_limits():
    spec = make_spec(type="water", unit="present", limits={"kind": "general", "min": 5, "max": 9})
    assert evaluate(spec, make_reading(spec, 1), UTC_GENERAL) == "ok"
    assert evaluate(spec, make_reading(spec, 0), UTC_GENERAL) == "warning"


def test_water_volume_uses_limits():
    spec = make_spec(type="water", unit="ml", limits={"kind": "general", "min": 100})
    assert evaluate(spec, make_reading(spec, 50), UTC_GENERAL) == "warning"
    assert evaluate(spec, make_reading(spec, 150), UTC_GENERAL) == "ok"


@pytest.mark.parametrize(
    "day_start, night_start, hour, is_day",
    [
        (8, 20, 10, True),
        (8, 20, 22, False),
        (8, 20, 8, True),
        (8, 20, 20, False),
        (20, 6, 23, True),
        (20, 6, 3, True),
        (20, 6, 12, False),
        (20, 6, 6, False),
    ],
)
def test_day_night_selection(day_start, night_start, hour, is_day):
    general = GeneralConfig(timezone="UTC", dayStartHour=day_start, nightStartHour=night_start)
    assert is_day_hour(hour, general) is is_day

    spec = make_spec(limits={"kind": "timeBased", "day": {"min": 1, "max": 2}, "night": {"min": 3, "max": 4}})
    rng = effective_range(spec, general, hour)
    assert (rng.min, rng.max) == ((1, 2) if is_day else (3, 4))


def test_time_based_evaluation_uses_configured_timezone():
    spec = make_spec(limits={"kind": "timeBased", "day": {"min": 28, "max": 32}, "night": {"min": 20, "max": 24}})
    reading = make_reading(spec, 30)

    assert evaluate(spec, reading, UTC_GENERAL, now=at_hour(10)) == "ok"
    assert evaluate(spec, reading, UTC_GENERAL, now=at_hour(22)) == "warning"

    # 10:30 UTC is 19:30 in Tokyo (day), 21:30 UTC is 06:30 next morning (night)
    tokyo = GeneralConfig(timezone="Asia/Tokyo", dayStartHour=8, nightStartHour=20)
    assert evaluate(spec, reading, tokyo, now=at_hour(10)) == "ok"
    assert evaluate(spec, reading, tokyo, now=at_hour(21)) == "warning"


def test_is_stale():
    spec = make_spec()
    reading = make_reading(spec, 25, timestamp=1_000_000)

    assert not is_stale(reading, retention_minutes=1, now_ms=1_000_000 + 60_000)
    assert is_stale(reading, retention_minutes=1, now_ms=1_000_000 + 60_001)
    assert not is_stale(reading, retention_minutes=0, now_ms=10**12)
