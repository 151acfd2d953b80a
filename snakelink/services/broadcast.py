from __future__ import annotations

import logging

from fastapi import WebSocket

from ..domain.models import Reading

logger = logging.getLogger(__name__)


class LiveBroadcaster:
    """Pushes every polled snapshot to the connected websocket clients."""

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def add(self, ws: WebSocket) -> None:
        self._clients.add(ws)
        logger.info("Live client connected (%d total)", len(self._clients))

    def remove(self, ws: WebSocket) -> None:
        self._clients.discard(ws)

    async def publish(self, readings: dict[str, Reading]) -> None:
        if not self._clients:
            return
        payload = {sid: r.model_dump(mode="json", by_alias=True) for sid, r in readings.items()}
        for ws in list(self._clients):
            try:
                await ws.send_json(payload)
            except Exception as e:
                logger.info("Dropping live client: %s", e)
                self._clients.discard(ws)
