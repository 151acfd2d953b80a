from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from ..domain.models import AppConfig, HardwareSpec, Reading, SensorConfigDocument, SensorSpec
from ..sensors.base import SensorReader
from ..sensors.factory import hardware_key, reader_for_sensor
from ..storage.json_store import JsonStore

logger = logging.getLogger(__name__)

Broadcast = Callable[[dict[str, Reading]], Union[Awaitable[None], None]]


class SensorPollingService:
    """
    Reads every active sensor on a fixed cadence and overwrites the live snapshot.

    A cycle schedules the next one only after it has finished, so snapshot
    writes never overlap. The cadence is taken from the app config at start.
    """

    def __init__(
        self,
        sensor_store: JsonStore[SensorConfigDocument],
        live_store: JsonStore[dict[str, Reading]],
        app_config_store: JsonStore[AppConfig],
        broadcast: Optional[Broadcast] = None,
        reader_factory: Callable[[SensorSpec], SensorReader] = reader_for_sensor,
        force_mock: bool = False,
    ) -> None:
        self._sensor_store = sensor_store
        self._live_store = live_store
        self._app_config_store = app_config_store
        self._broadcast = broadcast
        self._reader_factory = reader_factory
        self._force_mock = force_mock

        self._readers: dict[str, SensorReader] = {}
        self._devices: dict[Any, SensorReader] = {}
        self._task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None
        self.interval_s: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self.running:
            logger.warning("Sensor polling is already running")
            return

        cfg = self._app_config_store.load()
        self.interval_s = cfg.sensor_system.polling_interval_ms / 1000.0
        self._readers.clear()
        self._devices.clear()

        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop, self.interval_s), name="sensor_polling")
        logger.info("Sensor polling started (every %.1fs)", self.interval_s)

    async def stop(self) -> None:
        if not self.running:
            logger.info("Sensor polling is not running")
            return
        assert self._stop is not None and self._task is not None
        self._stop.set()
        task, self._task, self._stop = self._task, None, None
        # Let an in-progress cycle finish its snapshot write
        await task
        logger.info("Sensor polling stopped")

    async def restart(self) -> None:
        await self.stop()
        await self.start()

    def _reader(self, spec: SensorSpec) -> SensorReader:
        reader = self._readers.get(spec.id)
        if reader is None:
            key = hardware_key(spec)
            reader = self._devices.get(key) if key is not None else None
            if reader is None:
                reader = self._reader_factory(spec)
                if key is not None:
                    self._devices[key] = reader
            self._readers[spec.id] = reader
        return reader

    async def poll_once(self) -> dict[str, Reading]:
        doc = self._sensor_store.load()
        active = [s for s in doc.sensors if s.active is not False]
        readings: dict[str, Reading] = {}

        for sensor in active:
            logger.debug("Reading sensor %s", sensor.id)
            try:
                spec = sensor
                if self._force_mock and sensor.hardware is not None:
                    spec = sensor.model_copy(update={"hardware": HardwareSpec(mock=True)})

                result = await self._reader(spec).read(spec)
                if result is None:
                    logger.warning("No reading from sensor %s", sensor.id)
                    continue
                readings[sensor.id] = result
            except Exception as e:
                logger.error("Failed to read sensor %s: %s", sensor.id, e)

        self._live_store.save(readings)

        if self._broadcast is not None:
            try:
                res: Any = self._broadcast(readings)
                if inspect.isawaitable(res):
                    await res
            except Exception as e:
                logger.error("Broadcast failed: %s", e)

        logger.debug("Polled %d sensor(s)", len(readings))
        return readings

    async def _run(self, stop: asyncio.Event, interval_s: float) -> None:
        while not stop.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                logger.exception("Polling cycle error: %s", e)

            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_s)
            except asyncio.TimeoutError:
                pass
