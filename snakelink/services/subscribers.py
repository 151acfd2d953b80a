from __future__ import annotations

import logging

from ..storage.json_store import JsonStore

logger = logging.getLogger(__name__)


class SubscriberRegistry:
    """Alert recipients (Telegram chat ids), gated by pre-issued registration keys."""

    def __init__(self, subscriber_store: JsonStore[list[int]], keys_store: JsonStore[list[str]]) -> None:
        self._subscribers = subscriber_store
        self._keys = keys_store

    def subscribe(self, chat_id: int, code: str) -> bool:
        if not code or code not in self._keys.load():
            return False

        subs = self._subscribers.load()
        if chat_id in subs:
            return False

        subs.append(chat_id)
        self._subscribers.save(subs)
        logger.info("Chat %s subscribed to alerts", chat_id)
        return True

    def unsubscribe(self, chat_id: int) -> bool:
        subs = self._subscribers.load()
        remaining = [s for s in subs if s != chat_id]
        if len(remaining) == len(subs):
            return False
        self._subscribers.save(remaining)
        logger.info("Chat %s unsubscribed from alerts", chat_id)
        return True

    def recipients(self) -> list[int]:
        return self._subscribers.load()
