from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..core.timeutil import now_ms
from ..domain.models import AppConfig, GeneralConfig, Reading, SensorConfigDocument, SensorSpec, SensorStatus
from ..domain.status import evaluate, is_stale
from ..storage.json_store import JsonStore

logger = logging.getLogger(__name__)

AlertHandler = Callable[[SensorSpec, SensorStatus, Optional[Reading]], Awaitable[None]]


@dataclass(frozen=True)
class Transition:
    sensor_id: str
    previous: SensorStatus
    current: SensorStatus
    alerted: bool


class SensorWatchingService:
    """
    Tracks the last status of every active sensor and alerts on transitions.

    Alerts are edge-triggered: entering warning/unknown fires once, staying
    there does not. Recoveries to ok are recorded without an alert. A
    transition inside the per-sensor cooldown is not recorded, so it alerts
    on the first check after the cooldown ends.
    """

    def __init__(
        self,
        sensor_store: JsonStore[SensorConfigDocument],
        live_store: JsonStore[dict[str, Reading]],
        app_config_store: JsonStore[AppConfig],
        on_alert: AlertHandler,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._sensor_store = sensor_store
        self._live_store = live_store
        self._app_config_store = app_config_store
        self._on_alert = on_alert
        self._clock = clock

        self.last_status: dict[str, SensorStatus] = {}
        self._last_alert_ms: dict[str, int] = {}

        self._general = GeneralConfig()
        self._retention_minutes = 0
        self._cooldown_ms = 0

        self._task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None
        self.interval_s: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    def apply_config(self, cfg: AppConfig) -> None:
        self._general = cfg.general
        self._retention_minutes = cfg.sensor_system.retention_minutes
        self._cooldown_ms = cfg.sensor_system.alert_cooldown_ms
        self.interval_s = cfg.sensor_system.polling_interval_ms / 1000.0

    async def start(self) -> None:
        if self.running:
            logger.warning("Sensor watching is already running")
            return

        self.apply_config(self._app_config_store.load())
        assert self.interval_s is not None
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop, self.interval_s), name="sensor_watching")
        logger.info("Sensor watching started (every %.1fs)", self.interval_s)

    async def stop(self) -> None:
        if not self.running:
            return
        assert self._stop is not None and self._task is not None
        self._stop.set()
        task, self._task, self._stop = self._task, None, None
        await task
        logger.info("Sensor watching stopped")

    async def restart(self) -> None:
        await self.stop()
        await self.start()

    async def check_all(self) -> list[Transition]:
        sensors = self._sensor_store.load().sensors
        live = self._live_store.load()
        now = self._clock()
        transitions: list[Transition] = []

        for sensor in sensors:
            if sensor.active is False:
                continue

            reading = live.get(sensor.id)
            if reading is not None and is_stale(reading, self._retention_minutes, now):
                reading = None

            status = evaluate(sensor, reading, self._general)
            prev = self.last_status.get(sensor.id, "ok")
            if status == prev:
                continue

            alerted = False
            if status == "ok":
                logger.info("%s recovered (%s -> ok)", sensor.id, prev)
                self.last_status[sensor.id] = status
            else:
                alerted = await self._alert(sensor, prev, status, reading, now)
                # A transition held back by the cooldown is retried next cycle
                if alerted:
                    self.last_status[sensor.id] = status
            transitions.append(Transition(sensor.id, prev, status, alerted))

        return transitions

    async def _alert(
        self,
        sensor: SensorSpec,
        prev: SensorStatus,
        status: SensorStatus,
        reading: Optional[Reading],
        now: int,
    ) -> bool:
        last = self._last_alert_ms.get(sensor.id)
        if last is not None and now - last < self._cooldown_ms:
            logger.info("%s %s -> %s within alert cooldown, not alerting", sensor.id, prev, status)
            return False

        logger.warning("%s %s -> %s, sending alert", sensor.id, prev, status)
        self._last_alert_ms[sensor.id] = now
        try:
            await self._on_alert(sensor, status, reading)
        except Exception as e:
            logger.error("Failed to send alert for %s: %s", sensor.id, e)
        return True

    async def _run(self, stop: asyncio.Event, interval_s: float) -> None:
        while not stop.is_set():
            try:
                await self.check_all()
            except Exception as e:
                logger.exception("Watching cycle error: %s", e)

            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_s)
            except asyncio.TimeoutError:
                pass
