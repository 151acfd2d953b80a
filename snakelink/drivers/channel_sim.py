from __future__ import annotations
import logging
from collections import deque

logger = logging.getLogger(__name__)


class LoggingChannel:
    """Stand-in alert channel when no bot token is configured."""

    channel_id = "log"

    def __init__(self) -> None:
        self.messages: deque[tuple[int, str]] = deque(maxlen=100)

    async def send(self, chat_id: int, text: str) -> None:
        self.messages.append((chat_id, text))
        logger.info("ALERT to=%s\n%s", chat_id, text)
