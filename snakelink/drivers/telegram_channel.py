from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..services.subscribers import SubscriberRegistry

logger = logging.getLogger(__name__)


class TelegramChannel:
    """Outbound alert channel over the Telegram Bot HTTP API."""

    channel_id = "telegram"

    def __init__(
        self,
        token: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = f"{api_base.rstrip('/')}/bot{token}"
        self._timeout = timeout
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self._timeout, transport=self._transport)

    async def send(self, chat_id: int, text: str) -> None:
        """Send an HTML message. Raises on HTTP or API errors (the queue logs them)."""
        async with self._client() as client:
            resp = await client.post(
                f"{self._base_url}/sendMessage",
                json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
            )
            resp.raise_for_status()
            data = resp.json()
            if not data.get("ok", False):
                raise RuntimeError(data.get("description", "Telegram API error"))

    async def get_updates(self, offset: Optional[int], poll_timeout: int = 30) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"timeout": poll_timeout}
        if offset is not None:
            params["offset"] = offset
        async with self._client(timeout=self._timeout + poll_timeout) as client:
            resp = await client.get(f"{self._base_url}/getUpdates", params=params)
            resp.raise_for_status()
            return resp.json().get("result", [])


class TelegramCommandListener:
    """Handles /start, /subscribe <code> and /unsubscribe via long-polling."""

    def __init__(self, channel: TelegramChannel, subscribers: SubscriberRegistry, app_name: str) -> None:
        self._channel = channel
        self._subscribers = subscribers
        self._app_name = app_name
        self._offset: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    def handle_text(self, chat_id: int, text: str) -> Optional[str]:
        parts = text.strip().split()
        if not parts:
            return None
        command = parts[0].split("@", 1)[0].lower()

        if command == "/start":
            return f"Welcome to the {self._app_name} alert bot!\nTo subscribe, send /subscribe <SECRET>."
        if command == "/subscribe":
            code = parts[1] if len(parts) > 1 else ""
            if self._subscribers.subscribe(chat_id, code):
                return "✅ You are now subscribed to alerts."
            return "❌ Invalid code or you're already subscribed."
        if command == "/unsubscribe":
            if self._subscribers.unsubscribe(chat_id):
                return "🛑 You've been unsubscribed."
            return "ℹ️ You were not subscribed."
        return None

    async def poll_once(self) -> int:
        updates = await self._channel.get_updates(self._offset)
        for update in updates:
            self._offset = int(update["update_id"]) + 1
            message = update.get("message") or {}
            text = message.get("text")
            chat_id = (message.get("chat") or {}).get("id")
            if not text or chat_id is None:
                continue
            reply = self.handle_text(int(chat_id), text)
            if reply:
                try:
                    await self._channel.send(int(chat_id), reply)
                except Exception as e:
                    logger.warning("Telegram reply to %s failed: %s", chat_id, e)
        return len(updates)

    async def _run(self) -> None:
        backoff = 1.0
        while True:
            try:
                await self.poll_once()
                backoff = 1.0
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Telegram getUpdates failed, retrying in %.0fs: %s", backoff, e)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, 60.0)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="telegram_commands")
            logger.info("Telegram command listener started")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
