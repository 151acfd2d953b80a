from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SensorType = Literal["temperature", "humidity", "water", "pressure"]
SensorStatus = Literal["ok", "warning", "unknown"]

# Unit that marks a water sensor as a presence switch (1 = water present)
WATER_PRESENT_UNIT = "present"
WATER_PRESENT = 1


class _Record(BaseModel):
    """Persisted record: camelCase on disk, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)


class HardwareSpec(_Record):
    mock: Optional[bool] = None
    pin: Optional[int] = None                  # GPIO pin (DHT11/DHT22)
    model: Optional[Literal["11", "22"]] = None
    i2c_address: Optional[int] = Field(default=None, alias="i2cAddress")
    i2c_bus_no: Optional[int] = Field(default=None, alias="i2cBusNo")
    device: Optional[str] = None               # serial/SPI path, informational


class RangeLimits(_Record):
    min: Optional[float] = None
    max: Optional[float] = None


class GeneralLimits(RangeLimits):
    kind: Literal["general"] = "general"


class TimeBasedLimits(_Record):
    kind: Literal["timeBased"] = "timeBased"
    day: RangeLimits
    night: RangeLimits


Limits = Annotated[Union[GeneralLimits, TimeBasedLimits], Field(discriminator="kind")]


class SensorSpec(_Record):
    id: str
    name: str
    type: SensorType
    unit: str
    active: bool = True
    hardware: Optional[HardwareSpec] = None
    limits: Limits = Field(default_factory=GeneralLimits)

    @model_validator(mode="before")
    @classmethod
    def _legacy_limits(cls, data: Any) -> Any:
        # Older config files store `limitsType` + `readingLimits`, or bare min/max.
        if not isinstance(data, dict) or "limits" in data:
            return data
        data = dict(data)
        limits_type = data.pop("limitsType", None)
        reading_limits = data.pop("readingLimits", None)
        if isinstance(reading_limits, dict):
            kind = "timeBased" if limits_type == "timeBased" else "general"
            data["limits"] = {"kind": kind, **reading_limits}
        elif "min" in data or "max" in data:
            data["limits"] = {"kind": "general", "min": data.pop("min", None), "max": data.pop("max", None)}
        return data


class SensorConfigDocument(_Record):
    sensors: list[SensorSpec] = Field(default_factory=list)


class Reading(_Record):
    model_config = ConfigDict(frozen=True)

    name: str
    type: SensorType
    unit: str
    value: Optional[float] = None
    timestamp: int  # epoch milliseconds


LiveSnapshot = dict[str, Reading]


class LogEntry(_Record):
    timestamp: int
    readings: dict[str, Reading] = Field(default_factory=dict)


class GeneralConfig(_Record):
    name: str = "ColdBloodCast"
    timezone: str = "Europe/Berlin"
    day_start_hour: int = Field(default=8, ge=0, le=23, alias="dayStartHour")
    night_start_hour: int = Field(default=20, ge=0, le=23, alias="nightStartHour")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            raise ValueError(f"Unknown timezone: {v!r}")
        return v


class SensorSystemConfig(_Record):
    polling_interval_ms: int = Field(default=10_000, gt=0, alias="pollingIntervalMs")
    retention_minutes: int = Field(default=60, ge=0, alias="retentionMinutes")
    auto_log_interval_ms: int = Field(default=60_000, gt=0, alias="autoLogIntervalMs")
    log_file_limit: int = Field(default=100, ge=1, alias="logFileLimit")
    remote_sync_enabled: bool = Field(default=False, alias="remoteSyncEnabled")
    alert_cooldown_ms: int = Field(default=1000, ge=0, alias="alertCooldownMs")


class AppConfig(_Record):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    sensor_system: SensorSystemConfig = Field(default_factory=SensorSystemConfig, alias="sensorSystem")
