from __future__ import annotations

import random

from ..domain.models import Reading, SensorSpec
from .base import SensorReader, make_reading

# Plausible (low, high, decimals) per sensor type
MOCK_RANGES = {
    "temperature": (22.0, 34.0, 1),
    "humidity": (30.0, 70.0, 1),
    "water": (0.0, 1.0, 0),
    "pressure": (980.0, 1040.0, 1),
}


class MockReader(SensorReader):
    """Synthesizes bounded random values so the pipeline runs without hardware."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def read(self, spec: SensorSpec) -> Reading:
        low, high, decimals = MOCK_RANGES.get(spec.type, (0.0, 100.0, 1))
        value = round(self._rng.uniform(low, high), decimals)
        return make_reading(spec, float(value))
