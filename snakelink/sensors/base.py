from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from ..core.timeutil import now_ms
from ..domain.models import Reading, SensorSpec

logger = logging.getLogger(__name__)


def make_reading(spec: SensorSpec, value: Optional[float]) -> Reading:
    return Reading(name=spec.name, type=spec.type, unit=spec.unit, value=value, timestamp=now_ms())


class SensorReader(ABC):
    """Reads one sensor. Implementations never raise: failures yield value=None."""

    @abstractmethod
    async def read(self, spec: SensorSpec) -> Reading:
        ...


class DriverState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class HardwareReader(SensorReader):
    """
    Base for readers backed by a blocking hardware driver.

    The driver is opened on first read; the outcome (ready or failed) is kept
    for the lifetime of the reader, so a missing driver is not retried.
    Driver calls run in the default executor.
    """

    label = "hardware"

    def __init__(self) -> None:
        self._state = DriverState.UNINITIALIZED
        self._device: Any = None

    @property
    def state(self) -> DriverState:
        return self._state

    @abstractmethod
    def _open(self) -> Any:
        """Create the driver handle. Raise if the hardware/library is unavailable."""
        ...

    @abstractmethod
    def _sample(self, spec: SensorSpec) -> Optional[float]:
        """Blocking read of the quantity `spec.type` from the open device."""
        ...

    def _ensure_ready(self) -> bool:
        if self._state is DriverState.UNINITIALIZED:
            try:
                self._device = self._open()
                self._state = DriverState.READY
                logger.info("%s driver initialized", self.label)
            except Exception as e:
                self._state = DriverState.FAILED
                logger.warning("%s driver not available, readings will be null: %s", self.label, e)
        return self._state is DriverState.READY

    async def read(self, spec: SensorSpec) -> Reading:
        loop = asyncio.get_running_loop()
        try:
            if not await loop.run_in_executor(None, self._ensure_ready):
                return make_reading(spec, None)
            value = await loop.run_in_executor(None, self._sample, spec)
        except Exception as e:
            logger.error("%s read failed for sensor %s: %s", self.label, spec.id, e)
            return make_reading(spec, None)

        if value is not None and spec.type == "temperature" and spec.unit == "°F":
            value = value * 9.0 / 5.0 + 32.0
        return make_reading(spec, None if value is None else float(value))
