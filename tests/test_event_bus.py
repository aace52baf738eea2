import pytest

from studio.shared.core import events
from studio.shared.core.event_bus import EventBus


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber():
    bus = EventBus()
    seen = []

    async def first(payload):
        seen.append(("first", payload["fragment"]))

    async def second(payload):
        seen.append(("second", payload["fragment"]))

    await bus.subscribe(events.TOPIC_ADDRESS_CHANGED, first)
    await bus.subscribe(events.TOPIC_ADDRESS_CHANGED, second)
    await bus.publish(events.TOPIC_ADDRESS_CHANGED, events.create_address_changed_event("id=1"))
    assert await bus.wait_until_idle() is True

    assert sorted(seen) == [("first", "id=1"), ("second", "id=1")]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    async def broken(payload):
        raise RuntimeError("handler failed")

    async def healthy(payload):
        seen.append(payload)

    await bus.subscribe("t", broken)
    await bus.subscribe("t", healthy)
    await bus.publish("t", {"n": 1})
    await bus.wait_until_idle()

    assert seen == [{"n": 1}]


@pytest.mark.asyncio
async def test_unsubscribe_callable():
    bus = EventBus()
    seen = []

    async def handler(payload):
        seen.append(payload)

    unsubscribe = await bus.subscribe("t", handler)
    await unsubscribe()
    await bus.publish("t", {})
    await bus.wait_until_idle()

    assert seen == []
    assert bus.has_subscribers("t") is False


@pytest.mark.asyncio
async def test_wait_until_idle_follows_nested_publishes():
    bus = EventBus()
    seen = []

    async def relay(payload):
        await bus.publish("second", payload)

    async def sink(payload):
        seen.append(payload)

    await bus.subscribe("first", relay)
    await bus.subscribe("second", sink)
    await bus.publish("first", {"x": 1})
    await bus.wait_until_idle()

    assert seen == [{"x": 1}]


def test_event_factories():
    assert events.create_host_message_event({"hash": "#a"}) == {"data": {"hash": "#a"}}
    assert events.create_navigation_event("id=1", "editor", 3) == {"fragment": "id=1", "mode": "editor", "token": 3}
    assert events.create_user_action_event("tree:select") == {"action": "tree:select"}
    log = events.create_logs_event("hello", "warning")
    assert log["message"] == "hello" and log["level"] == "warning"


@pytest.mark.asyncio
async def test_publish_nowait_is_covered_by_wait_until_idle():
    bus = EventBus()
    seen = []

    async def handler(payload):
        seen.append(payload)

    await bus.subscribe("t", handler)
    assert bus.publish_nowait("t", {"n": 1}) is not None
    assert await bus.wait_until_idle() is True

    assert seen == [{"n": 1}]


def test_publish_nowait_without_a_loop_is_dropped():
    assert EventBus().publish_nowait("t", {}) is None
