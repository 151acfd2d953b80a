from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..drivers.channel_sim import LoggingChannel
from ..drivers.telegram_channel import TelegramChannel, TelegramCommandListener
from ..services.alerts import AlertService
from ..services.broadcast import LiveBroadcaster
from ..services.notification_queue import NotificationQueue
from ..services.polling import SensorPollingService
from ..services.sensor_logging import SensorLoggingService
from ..services.subscribers import SubscriberRegistry
from ..services.watching import SensorWatchingService
from ..storage.json_store import DataStorage
from .config import Settings

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Every service and store of one running instance, wired explicitly."""

    settings: Settings
    storage: DataStorage
    subscribers: SubscriberRegistry
    queue: NotificationQueue
    alerts: AlertService
    broadcaster: LiveBroadcaster
    polling: SensorPollingService
    sensor_logging: SensorLoggingService
    watching: SensorWatchingService
    commands: Optional[TelegramCommandListener] = None

    async def start(self) -> None:
        await self.polling.start()
        await self.sensor_logging.start()
        await self.watching.start()
        if self.commands is not None:
            self.commands.start()

    async def restart_sensor_services(self) -> None:
        """Re-read the app config: the only way new cadences take effect."""
        await self.polling.restart()
        await self.sensor_logging.restart()
        await self.watching.restart()

    async def stop(self) -> None:
        if self.commands is not None:
            await self.commands.stop()
        await self.watching.stop()
        await self.sensor_logging.stop()
        await self.polling.stop()
        await self.queue.close()


def build_context(settings: Settings) -> AppContext:
    storage = DataStorage(settings.data_dir)
    sensor_store = storage.sensor_config_store()
    live_store = storage.live_store()
    app_config_store = storage.app_config_store()

    subscribers = SubscriberRegistry(storage.subscriber_store(), storage.registration_keys_store())

    commands: Optional[TelegramCommandListener] = None
    if settings.telegram_bot_token:
        telegram = TelegramChannel(
            settings.telegram_bot_token,
            api_base=settings.telegram_api_base,
            timeout=settings.telegram_timeout_seconds,
        )
        send = telegram.send
        if settings.telegram_commands_enabled:
            commands = TelegramCommandListener(telegram, subscribers, settings.app_name)
    else:
        logger.warning("No Telegram bot token configured, alerts will only be logged")
        send = LoggingChannel().send

    queue = NotificationQueue(
        send,
        interval_ms=settings.notify_interval_ms,
        interval_cap=settings.notify_interval_cap,
        enabled=settings.alerts_enabled,
    )
    alerts = AlertService(queue, subscribers, app_config_store)
    broadcaster = LiveBroadcaster()

    return AppContext(
        settings=settings,
        storage=storage,
        subscribers=subscribers,
        queue=queue,
        alerts=alerts,
        broadcaster=broadcaster,
        polling=SensorPollingService(
            sensor_store,
            live_store,
            app_config_store,
            broadcast=broadcaster.publish,
            force_mock=settings.use_mock,
        ),
        sensor_logging=SensorLoggingService(live_store, storage.log_store(), app_config_store),
        watching=SensorWatchingService(sensor_store, live_store, app_config_store, on_alert=alerts.send_alert),
        commands=commands,
    )
