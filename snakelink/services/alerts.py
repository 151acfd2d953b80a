from __future__ import annotations

import logging
import platform
import sys
from html import escape
from typing import Optional

from ..core.timeutil import format_local_ms, local_hour, now_ms
from ..domain.models import (
    AppConfig,
    GeneralLimits,
    RangeLimits,
    Reading,
    SensorSpec,
    SensorStatus,
    TimeBasedLimits,
)
from ..domain.status import is_day_hour
from ..storage.json_store import JsonStore
from .notification_queue import NotificationQueue
from .subscribers import SubscriberRegistry

logger = logging.getLogger(__name__)


def _bounds(rng: RangeLimits, unit: str) -> str:
    lo = f"{rng.min:g}{unit}" if rng.min is not None else "-∞"
    hi = f"{rng.max:g}{unit}" if rng.max is not None else "+∞"
    return escape(f"{lo} – {hi}")


def format_limits(spec: SensorSpec, night: bool) -> str:
    limits = spec.limits
    if isinstance(limits, GeneralLimits):
        return f"<b>General:</b> <i>{_bounds(limits, spec.unit)}</i>"
    if isinstance(limits, TimeBasedLimits):
        day_label = "Day (past)" if night else "Day (current)"
        night_label = "Night (current)" if night else "Night (upcoming)"
        return (
            f"<b>{day_label}:</b> <i>{_bounds(limits.day, spec.unit)}</i>\n"
            f"<b>{night_label}:</b> <i>{_bounds(limits.night, spec.unit)}</i>"
        )
    raise TypeError(f"Unsupported limits variant: {type(limits).__name__}")


def format_alert(
    spec: SensorSpec,
    status: SensorStatus,
    reading: Optional[Reading],
    cfg: AppConfig,
    night: bool,
) -> str:
    tz = cfg.general.timezone
    if reading is not None and reading.value is not None:
        value = f"<code>{escape(f'{reading.value:g}{spec.unit}')}</code>"
    else:
        value = "<code>n/a</code>"
    ts = format_local_ms(reading.timestamp, tz) if reading is not None else "n/a"

    return (
        f"🚨 <b>Alert:</b> <i>{escape(spec.name)}</i>\n"
        f"<b>Status:</b> <code>{escape(status.upper())}</code>\n"
        f"<b>Value:</b> {value}\n"
        f"\n"
        f"<b>Limits:</b>\n"
        f"{format_limits(spec, night)}\n"
        f"\n"
        f"<b>Time:</b> <code>{escape(ts)}</code>\n"
        f"\n"
        f"<code>ID:</code> {escape(spec.id)}\n"
        f"<code>Type:</code> {escape(spec.type)}"
    )


class AlertService:
    """Composes alert messages and fans them out to every registered recipient."""

    def __init__(
        self,
        queue: NotificationQueue,
        subscribers: SubscriberRegistry,
        app_config_store: JsonStore[AppConfig],
    ) -> None:
        self._queue = queue
        self._subscribers = subscribers
        self._app_config_store = app_config_store

    def _fan_out(self, message: str) -> int:
        recipients = self._subscribers.recipients()
        for chat_id in recipients:
            self._queue.enqueue(chat_id, message)
        return len(recipients)

    async def send_alert(self, spec: SensorSpec, status: SensorStatus, reading: Optional[Reading]) -> int:
        if not self._subscribers.recipients():
            logger.info("No alert recipients registered, alert for %s not sent", spec.id)
            return 0
        cfg = self._app_config_store.load()
        night = not is_day_hour(local_hour(cfg.general.timezone), cfg.general)
        return self._fan_out(format_alert(spec, status, reading, cfg, night))

    async def send_startup(self, app_name: str) -> int:
        cfg = self._app_config_store.load()
        tz = cfg.general.timezone
        html = (
            f"<b>🚀 {escape(app_name)} started</b>\n"
            f"<i>({escape(cfg.general.name)})</i>\n"
            f"\n"
            f"<b>Time:</b> <code>{format_local_ms(now_ms(), tz)}</code>\n"
            f"<b>Timezone:</b> <code>{escape(tz)}</code>\n"
            f"<b>Python:</b> <code>{platform.python_version()}</code>\n"
            f"<b>OS:</b> <code>{escape(sys.platform)}</code>\n"
            f"<b>Arch:</b> <code>{escape(platform.machine())}</code>"
        )
        return self._fan_out(html)

    async def send_test(self) -> int:
        cfg = self._app_config_store.load()
        html = (
            f"📢 <b>Test Alert</b>\n"
            f"<b>Time:</b> <code>{format_local_ms(now_ms(), cfg.general.timezone, '%H:%M:%S')}</code>\n"
            f"<b>Project:</b> <i>{escape(cfg.general.name)}</i>\n"
            f"\n"
            f"<code>This is a test notification.</code>"
        )
        return self._fan_out(html)
