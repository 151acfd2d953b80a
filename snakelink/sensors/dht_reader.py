from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from ..domain.models import SensorSpec
from .base import HardwareReader

logger = logging.getLogger(__name__)


class DHTReader(HardwareReader):
    """DHT11/DHT22 temperature + humidity sensor on a GPIO pin."""

    def __init__(self, pin: int, model: Literal["11", "22"] = "22") -> None:
        super().__init__()
        self.pin = pin
        self.model = model
        self.label = f"DHT{model}@D{pin}"

    def _open(self) -> Any:
        import adafruit_dht
        import board

        gpio_pin = getattr(board, f"D{self.pin}", None)
        if gpio_pin is None:
            raise ValueError(f"Invalid GPIO pin: D{self.pin}")
        cls = adafruit_dht.DHT11 if self.model == "11" else adafruit_dht.DHT22
        return cls(gpio_pin)

    def _sample(self, spec: SensorSpec) -> Optional[float]:
        # DHT sensors raise RuntimeError on checksum/timing glitches
        if spec.type == "temperature":
            return self._device.temperature
        if spec.type == "humidity":
            return self._device.humidity
        logger.warning("%s cannot measure %s (sensor %s)", self.label, spec.type, spec.id)
        return None
