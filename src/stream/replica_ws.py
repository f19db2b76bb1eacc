from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import websockets

from config import SWAP_CONFIG

from .sync import StoreSync

logger = logging.getLogger(__name__)

JOIN_EVENTS = ("join_public", "join_private")


class ReplicaStream:
    """
    Feeds the replica stores from the server websocket.

    Frames are JSON objects ``{"event": ..., "data": ...}``. Every connection
    starts from empty stores: the server resends initial snapshots after the
    join messages, and any disconnect resets all four stores.
    """

    def __init__(
        self,
        sync: StoreSync,
        socket_url: str | None = None,
        api_key: str | None = None,
        min_backoff: float = 1.0,
        max_backoff: float = 5.0,
        max_connect_errors: int = 3,
    ) -> None:
        self._sync = sync
        self._url = socket_url or SWAP_CONFIG["socketUrl"]
        self._api_key = api_key if api_key is not None else SWAP_CONFIG["apiKey"]
        self._min_backoff = min_backoff
        self._max_backoff = max_backoff
        self._max_connect_errors = max_connect_errors
        self._connect_errors = 0

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}"}

    def dispatch(self, raw: str | bytes) -> bool:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("replica WS non-JSON message: %r", raw)
            return False
        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            logger.debug("replica WS frame without event: %r", message)
            return False
        return self._sync.handle_event(message["event"], message.get("data"))

    async def stream(self) -> None:
        """Run one connection until it closes. Stores are reset on exit."""
        async with websockets.connect(
            self._url, additional_headers=self._headers()
        ) as ws:
            self._connect_errors = 0
            logger.info("replica WS connected to %s", self._url)
            try:
                for event in JOIN_EVENTS:
                    await ws.send(json.dumps({"event": event}))
                    logger.info("replica WS sent %s", event)
                async for raw in ws:
                    self.dispatch(raw)
            except websockets.exceptions.ConnectionClosed as exc:
                logger.info("replica WS closed: %s", exc)
            finally:
                self._sync.disconnected()

    async def run_forever(self, stop: Optional[asyncio.Event] = None) -> None:
        delay = self._min_backoff
        while stop is None or not stop.is_set():
            try:
                await self.stream()
                delay = self._min_backoff
            except (OSError, websockets.exceptions.WebSocketException) as exc:
                self._connect_errors += 1
                logger.warning(
                    "replica WS connect error #%d: %s", self._connect_errors, exc
                )
                if self._connect_errors >= self._max_connect_errors:
                    self._sync.disconnected()
                delay = min(delay * 2, self._max_backoff)
            if stop is not None and stop.is_set():
                break
            logger.info("replica WS reconnecting in %.1fs", delay)
            await asyncio.sleep(delay)
