from __future__ import annotations

import logging
from typing import Hashable, Optional

from ..domain.models import SensorSpec
from .base import SensorReader
from .bme_reader import DEFAULT_I2C_BUS, BMEReader
from .dht_reader import DHTReader
from .mock_reader import MockReader

logger = logging.getLogger(__name__)


def reader_for_sensor(spec: SensorSpec) -> SensorReader:
    """
    Pick the reader for a sensor's hardware binding.

    Priority: mock (or no hardware) -> GPIO pin (DHT) -> I²C address (BME280)
    -> mock fallback.
    """
    hw = spec.hardware

    if hw is None or hw.mock is True:
        return MockReader()

    if hw.pin is not None:
        return DHTReader(hw.pin, "11" if hw.model == "11" else "22")

    if hw.i2c_address is not None:
        bus_no = hw.i2c_bus_no if hw.i2c_bus_no is not None else DEFAULT_I2C_BUS
        return BMEReader(hw.i2c_address, bus_no)

    logger.warning("Unknown hardware configuration for sensor %r, using mock reader", spec.name)
    return MockReader()


def hardware_key(spec: SensorSpec) -> Optional[Hashable]:
    """
    Identity of the physical device behind a sensor, or None for mock readers.

    Sensors with the same key (e.g. temperature and humidity on one DHT22)
    must share one reader so the device is opened once.
    """
    hw = spec.hardware
    if hw is None or hw.mock is True:
        return None
    if hw.pin is not None:
        return ("dht", hw.pin, "11" if hw.model == "11" else "22")
    if hw.i2c_address is not None:
        return ("bme", hw.i2c_address, hw.i2c_bus_no if hw.i2c_bus_no is not None else DEFAULT_I2C_BUS)
    return None
