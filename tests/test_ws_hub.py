# tests/test_ws_hub.py

import asyncio

from matchday_backend.core import event_bus as topics
from matchday_backend.core.config import settings
from matchday_backend.core.event_bus import EventBus
from matchday_backend.routes.ws_routes import WebSocketHub


def test_hub_forwards_bus_messages():
    async def scenario():
        bus, hub = EventBus(), WebSocketHub()
        hub.attach(bus, asyncio.get_running_loop())
        queue = hub.register()

        bus.publish(topics.MATCH_STARTED, {"id": 1})
        await asyncio.sleep(0)
        return queue.get_nowait()

    assert asyncio.run(scenario()) == {"event": "match:started", "data": {"id": 1}}


def test_idle_client_backlog_is_bounded(monkeypatch):
    monkeypatch.setattr(settings, "ws_queue_size", 3)

    async def scenario():
        bus, hub = EventBus(), WebSocketHub()
        hub.attach(bus, asyncio.get_running_loop())
        idle = hub.register()

        for minute in range(10):
            bus.publish(topics.MATCH_EVENT, {"minute": minute})
        await asyncio.sleep(0)

        hub.detach(bus)
        return [idle.get_nowait()["data"]["minute"] for _ in range(idle.qsize())]

    # Oldest messages are kept, later ones dropped
    assert asyncio.run(scenario()) == [0, 1, 2]
