from __future__ import annotations

import logging
from typing import Any, Optional

from ..domain.models import SensorSpec
from .base import HardwareReader

logger = logging.getLogger(__name__)

DEFAULT_BME280_ADDRESS = 0x76
DEFAULT_I2C_BUS = 1


class BMEReader(HardwareReader):
    """BME280 temperature / humidity / pressure sensor on an I²C bus."""

    def __init__(self, address: int = DEFAULT_BME280_ADDRESS, bus_no: int = DEFAULT_I2C_BUS) -> None:
        super().__init__()
        self.address = address
        self.bus_no = bus_no
        self.label = f"BME280@{bus_no}:{address:#04x}"

    def _open(self) -> Any:
        from adafruit_bme280 import basic as adafruit_bme280
        from adafruit_extended_bus import ExtendedI2C

        i2c = ExtendedI2C(self.bus_no)
        return adafruit_bme280.Adafruit_BME280_I2C(i2c, address=self.address)

    def _sample(self, spec: SensorSpec) -> Optional[float]:
        if spec.type == "temperature":
            return self._device.temperature
        if spec.type == "humidity":
            return self._device.relative_humidity
        if spec.type == "pressure":
            return self._device.pressure  # hPa
        logger.warning("%s cannot measure %s (sensor %s)", self.label, spec.type, spec.id)
        return None
