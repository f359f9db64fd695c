# tests/test_event_bus.py

from matchday_backend.core.event_bus import ALL_TOPICS, MATCH_STARTED, MATCH_EVENT, EventBus


def test_topic_and_wildcard_subscribers_receive_payload():
    bus = EventBus()
    seen = []
    bus.subscribe(MATCH_STARTED, lambda topic, payload: seen.append(("topic", topic, payload)))
    bus.subscribe(ALL_TOPICS, lambda topic, payload: seen.append(("all", topic, payload)))

    delivered = bus.publish(MATCH_STARTED, {"id": 1})

    assert delivered == 2
    assert ("topic", MATCH_STARTED, {"id": 1}) in seen
    assert ("all", MATCH_STARTED, {"id": 1}) in seen


def test_failing_subscriber_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(topic, payload):
        raise RuntimeError("socket closed")

    bus.subscribe(MATCH_EVENT, broken)
    bus.subscribe(MATCH_EVENT, lambda topic, payload: seen.append(payload))

    assert bus.publish(MATCH_EVENT, "goal") == 1
    assert seen == ["goal"]


def test_unsubscribe():
    bus = EventBus()
    seen = []
    handler = lambda topic, payload: seen.append(payload)  # noqa: E731
    bus.subscribe(MATCH_EVENT, handler)
    bus.unsubscribe(MATCH_EVENT, handler)

    assert bus.publish(MATCH_EVENT, "goal") == 0
    assert seen == []
