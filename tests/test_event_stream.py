from __future__ import annotations

import asyncio

from starmarket.core.types import EngineEvent
from starmarket.streaming.event_stream import BoundedEventStream


def drain(queue: asyncio.Queue) -> list:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


def test_publish_fans_out_to_every_subscriber():
    stream = BoundedEventStream(maxsize=10)
    first = stream.open_subscription()
    second = stream.open_subscription()

    assert stream.publish_nowait(EngineEvent(tick=1))

    assert drain(first) == [EngineEvent(tick=1)]
    assert drain(second) == [EngineEvent(tick=1)]
    assert stream.get_stats().active_subscribers == 2


def test_full_subscriber_drops_without_blocking():
    stream = BoundedEventStream(maxsize=2)
    queue = stream.open_subscription()

    results = [stream.publish_nowait(EngineEvent(tick=t)) for t in range(4)]

    assert results == [True, True, False, False]
    assert [e.tick for e in drain(queue)] == [0, 1]
    assert stream.stats.messages_dropped == 2
    assert stream.stats.messages_published == 4


def test_close_sends_shutdown_signal_even_when_full():
    stream = BoundedEventStream(maxsize=1)
    queue = stream.open_subscription()
    stream.publish_nowait(EngineEvent(tick=1))

    stream.close()

    assert drain(queue) == [None]
    assert stream.closed
    assert not stream.publish_nowait(EngineEvent(tick=2))


def test_subscription_after_close_ends_immediately():
    stream = BoundedEventStream()
    stream.close()

    queue = stream.open_subscription()

    assert drain(queue) == [None]


def test_subscribe_iterates_until_close():
    async def scenario():
        stream = BoundedEventStream()
        queue = stream.open_subscription()
        for tick in range(3):
            stream.publish_nowait(EngineEvent(tick=tick))
        stream.close()
        return [event.tick async for event in stream.subscribe(queue)]

    assert asyncio.run(scenario()) == [0, 1, 2]


def test_close_subscription_stops_delivery():
    stream = BoundedEventStream()
    queue = stream.open_subscription()

    stream.close_subscription(queue)
    stream.publish_nowait(EngineEvent(tick=1))

    assert queue.empty()
    assert stream.stats.active_subscribers == 0
