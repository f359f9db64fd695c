# ws_routes.py
# Real-time feed for the frontend. The hub subscribes to every event-bus topic and
# forwards {"event": topic, "data": payload} to each connected /ws client.

import asyncio
import logging
from typing import Optional, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from matchday_backend.core.config import settings
from matchday_backend.core.event_bus import ALL_TOPICS, EventBus

logger = logging.getLogger(__name__)

router = APIRouter()


class WebSocketHub:
    """
    Bridges the synchronous event bus to async WebSocket connections.
    Publishers may run in worker threads (sync routes), so messages are handed
    to the event loop with call_soon_threadsafe.
    """

    def __init__(self):
        self._queues: Set[asyncio.Queue] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach(self, bus: EventBus, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        bus.subscribe(ALL_TOPICS, self.handle)

    def detach(self, bus: EventBus) -> None:
        bus.unsubscribe(ALL_TOPICS, self.handle)
        self._loop = None

    def register(self) -> asyncio.Queue:
        queue = asyncio.Queue(maxsize=settings.ws_queue_size)
        self._queues.add(queue)
        return queue

    def unregister(self, queue: asyncio.Queue) -> None:
        self._queues.discard(queue)

    @property
    def connection_count(self) -> int:
        return len(self._queues)

    def handle(self, topic: str, payload) -> None:
        if self._loop is None or not self._queues:
            return
        message = {"event": topic, "data": jsonable_encoder(payload)}
        for queue in list(self._queues):
            self._loop.call_soon_threadsafe(self._offer, queue, message)

    def _offer(self, queue: asyncio.Queue, message: dict) -> None:
        # A client that stopped reading loses messages instead of growing without bound
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.debug("WebSocket client backlog full; dropped %s", message["event"])


hub = WebSocketHub()


@router.websocket("/ws")
async def match_feed(websocket: WebSocket):
    await websocket.accept()
    queue = hub.register()
    logger.info("🔌 WebSocket client connected (%d open)", hub.connection_count)
    try:
        while True:
            message = await queue.get()
            await websocket.send_json(message)
    except WebSocketDisconnect:
        logger.info("🔌 WebSocket client disconnected")
    finally:
        hub.unregister(queue)
