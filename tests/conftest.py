from __future__ import annotations

from typing import Any

import pytest

from snakelink.core.timeutil import now_ms
from snakelink.domain.models import AppConfig, Reading, SensorConfigDocument, SensorSpec
from snakelink.storage.json_store import DataStorage


@pytest.fixture
def storage(tmp_path) -> DataStorage:
    return DataStorage(tmp_path / "data")


def make_spec(sensor_id: str = "temp1", **overrides: Any) -> SensorSpec:
    data: dict[str, Any] = {
        "id": sensor_id,
        "name": f"Sensor {sensor_id}",
        "type": "temperature",
        "unit": "°C",
        "limits": {"kind": "general", "min": 20, "max": 30},
    }
    data.update(overrides)
    return SensorSpec.model_validate(data)


def make_reading(spec: SensorSpec, value: float | None, timestamp: int | None = None) -> Reading:
    return Reading(
        name=spec.name,
        type=spec.type,
        unit=spec.unit,
        value=value,
        timestamp=now_ms() if timestamp is None else timestamp,
    )


def write_sensors(storage: DataStorage, *specs: SensorSpec) -> None:
    storage.sensor_config_store().save(SensorConfigDocument(sensors=list(specs)))


def write_app_config(storage: DataStorage, **sensor_system: Any) -> AppConfig:
    cfg = AppConfig.model_validate({"general": {"timezone": "UTC"}, "sensorSystem": sensor_system})
    storage.app_config_store().save(cfg)
    return cfg
