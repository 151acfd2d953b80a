from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..core.timeutil import now_ms
from ..domain.models import AppConfig, LogEntry, Reading
from ..storage.json_store import JsonStore

logger = logging.getLogger(__name__)


class SensorLoggingService:
    """Appends the live snapshot to the bounded log history on its own cadence."""

    def __init__(
        self,
        live_store: JsonStore[dict[str, Reading]],
        log_store: JsonStore[list[LogEntry]],
        app_config_store: JsonStore[AppConfig],
    ) -> None:
        self._live_store = live_store
        self._log_store = log_store
        self._app_config_store = app_config_store

        self._task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None
        self.interval_s: Optional[float] = None
        self.max_entries: int = 100

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self.running:
            logger.warning("Sensor logging is already running")
            return

        cfg = self._app_config_store.load().sensor_system
        self.interval_s = cfg.auto_log_interval_ms / 1000.0
        self.max_entries = cfg.log_file_limit

        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop, self.interval_s), name="sensor_logging")
        logger.info("Sensor logging started (every %.1fs, keep %d)", self.interval_s, self.max_entries)

    async def stop(self) -> None:
        if not self.running:
            logger.info("Sensor logging is not running")
            return
        assert self._stop is not None and self._task is not None
        self._stop.set()
        task, self._task, self._stop = self._task, None, None
        await task
        logger.info("Sensor logging stopped")

    async def restart(self) -> None:
        await self.stop()
        await self.start()

    def log_once(self) -> LogEntry:
        readings = self._live_store.load()
        logs = self._log_store.load([])
        entry = LogEntry(timestamp=now_ms(), readings=readings)

        logs.append(entry)
        if len(logs) > self.max_entries:
            del logs[: len(logs) - self.max_entries]

        self._log_store.save(logs)
        logger.debug("Logged %d sensor(s)", len(readings))
        return entry

    async def _run(self, stop: asyncio.Event, interval_s: float) -> None:
        # First entry after one full interval
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_s)
                return
            except asyncio.TimeoutError:
                pass

            try:
                self.log_once()
            except Exception as e:
                logger.exception("Logging cycle error: %s", e)
