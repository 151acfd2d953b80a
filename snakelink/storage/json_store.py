from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..domain.models import AppConfig, LogEntry, Reading, SensorConfigDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonStore(Generic[T]):
    """
    One named JSON record on disk.

    `load` never raises for a missing, empty or malformed file: it falls back
    to the default. `save` always overwrites the whole file.
    """

    def __init__(self, path: str | Path, schema: Any, default_factory: Callable[[], T]) -> None:
        self._path = Path(path)
        self._adapter: TypeAdapter[T] = TypeAdapter(schema)
        self._default_factory = default_factory

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def _ensure_dir(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def load(self, default: Optional[T] = None) -> T:
        fallback = default if default is not None else self._default_factory()
        self._ensure_dir()

        try:
            raw = self._path.read_bytes().strip() if self._path.exists() else b""
        except OSError as e:
            logger.warning("Cannot read %s, using default: %s", self._path, e)
            return fallback

        if not raw:
            # Materialize the default so the record exists from now on
            self.save(fallback)
            return fallback

        try:
            return self._adapter.validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Malformed content in %s, using default: %s", self._path, e)
            return fallback

    def save(self, value: T) -> None:
        self._ensure_dir()
        data = self._adapter.dump_python(value, mode="json", by_alias=True)
        self._path.write_text(json.dumps(data, indent=4, ensure_ascii=False), encoding="utf-8")


class DataStorage:
    """Factory for the application's JSON stores, all under one base directory."""

    def __init__(self, base_path: str | Path = "./data") -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    def sensor_config_store(self) -> JsonStore[SensorConfigDocument]:
        return JsonStore(self._base / "sensor.configs.json", SensorConfigDocument, SensorConfigDocument)

    def app_config_store(self) -> JsonStore[AppConfig]:
        return JsonStore(self._base / "app.config.json", AppConfig, AppConfig)

    def live_store(self) -> JsonStore[dict[str, Reading]]:
        return JsonStore(self._base / "liveData.json", dict[str, Reading], dict)

    def log_store(self) -> JsonStore[list[LogEntry]]:
        return JsonStore(self._base / "sensor.logs.json", list[LogEntry], list)

    def subscriber_store(self) -> JsonStore[list[int]]:
        return JsonStore(self._base / "subscribers.json", list[int], list)

    def registration_keys_store(self) -> JsonStore[list[str]]:
        return JsonStore(self._base / "telegram.registration.keys.json", list[str], list)
