# matchday_backend/core/event_bus.py
# Publish/subscribe channel between the match engine and its real-time consumers.
# Services publish; the WebSocket broadcaster (routes/ws_routes.py) subscribes.
# Delivery is fire-and-forget: a failing subscriber is logged and skipped.

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# ==========================================
# Topics consumed by the frontend
# ==========================================
MATCH_STARTED = "match:started"
MATCH_EVENT = "match:event"
MATCH_FINISHED = "match:finished"
MATCH_UPDATED = "match:updated"
TABLE_UPDATED = "table:updated"
SEMI_CREATED = "semi:created"
FINAL_CREATED = "final:created"
FINAL_FINISHED = "final:finished"
LEAGUE_CHAMPION = "league:champion"

ALL_TOPICS = "*"

Handler = Callable[[str, Any], None]


class EventBus:
    """In-process pub/sub. Handlers receive (topic, payload)."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        """Register a handler for one topic, or for every topic with "*"."""
        self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        if handler in self._subscribers.get(topic, []):
            self._subscribers[topic].remove(handler)

    def publish(self, topic: str, payload: Any) -> int:
        """Deliver to every matching subscriber; returns how many handlers succeeded."""
        delivered = 0
        for handler in list(self._subscribers.get(topic, [])) + list(self._subscribers.get(ALL_TOPICS, [])):
            try:
                handler(topic, payload)
                delivered += 1
            except Exception:
                logger.exception("Subscriber failed while handling %s", topic)
        logger.debug("📣 Published %s to %d subscriber(s)", topic, delivered)
        return delivered


# Process-wide bus used by the application (tests inject their own)
event_bus = EventBus()


def get_event_bus() -> EventBus:
    return event_bus
