from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.timeutil import local_hour
from .models import (
    WATER_PRESENT,
    WATER_PRESENT_UNIT,
    GeneralConfig,
    GeneralLimits,
    RangeLimits,
    Reading,
    SensorSpec,
    SensorStatus,
    TimeBasedLimits,
)


def is_day_hour(hour: int, general: GeneralConfig) -> bool:
    day, night = general.day_start_hour, general.night_start_hour
    # Handle day periods that wrap midnight (e.g., day 20:00 -> night 06:00)
    if day < night:
        return day <= hour < night
    return hour >= day or hour < night


def effective_range(spec: SensorSpec, general: GeneralConfig, hour: int) -> RangeLimits:
    limits = spec.limits
    if isinstance(limits, GeneralLimits):
        return RangeLimits(min=limits.min, max=limits.max)
    if isinstance(limits, TimeBasedLimits):
        return limits.day if is_day_hour(hour, general) else limits.night
    raise TypeError(f"Unsupported limits variant: {type(limits).__name__}")


def evaluate(
    spec: SensorSpec,
    reading: Optional[Reading],
    general: GeneralConfig,
    now: Optional[datetime] = None,
) -> SensorStatus:
    """
    Classify a sensor's latest reading as ok / warning / unknown.

    Water presence sensors ignore limits: 1 (present) is ok, anything else a
    warning. Day/night limits are chosen by the current hour in the
    configured timezone. A missing bound is open; no bounds at all is unknown.
    """
    if reading is None or reading.value is None:
        return "unknown"

    if spec.type == "water" and spec.unit == WATER_PRESENT_UNIT:
        return "ok" if reading.value == WATER_PRESENT else "warning"

    rng = effective_range(spec, general, local_hour(general.timezone, now))
    if rng.min is None and rng.max is None:
        return "unknown"

    if rng.min is not None and reading.value < rng.min:
        return "warning"
    if rng.max is not None and reading.value > rng.max:
        return "warning"
    return "ok"


def is_stale(reading: Reading, retention_minutes: int, now_ms: int) -> bool:
    """True if the reading is older than the live-data retention window (0 disables)."""
    if retention_minutes <= 0:
        return False
    return now_ms - reading.timestamp > retention_minutes * 60_000
