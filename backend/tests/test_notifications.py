"""
Tests for the notification broker and the SSE stream.
"""

import asyncio
import json

import pytest

from eventdesk.services.notification_service import (
    NotificationBroker,
    format_sse,
    new_checkin,
    stream,
)


@pytest.mark.asyncio
async def test_publish_reaches_only_the_events_subscribers():
    broker = NotificationBroker(queue_size=5)
    mine = broker.subscribe("evt-1")
    other = broker.subscribe("evt-2")

    delivered = broker.publish(new_checkin("evt-1", "AB12CD34", 1))

    assert delivered == 1
    assert mine.queue.qsize() == 1
    assert other.queue.empty()


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_a_no_op():
    broker = NotificationBroker(queue_size=5)
    assert broker.publish(new_checkin("evt-1", "AB12CD34", 1)) == 0


@pytest.mark.asyncio
async def test_full_queue_drops_instead_of_blocking():
    broker = NotificationBroker(queue_size=2)
    slow = broker.subscribe("evt-1")
    fast = broker.subscribe("evt-1")

    for count in range(1, 3):
        assert broker.publish(new_checkin("evt-1", f"R{count}", count)) == 2
    fast.queue.get_nowait()

    assert broker.publish(new_checkin("evt-1", "R3", 3)) == 1
    assert slow.queue.qsize() == 2


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent():
    broker = NotificationBroker(queue_size=5)
    subscription = broker.subscribe("evt-1")

    broker.unsubscribe(subscription)
    broker.unsubscribe(subscription)

    assert broker.subscriber_count("evt-1") == 0


def test_sse_frame_format():
    frame = format_sse(new_checkin("evt-1", "AB12CD34", 7))

    assert frame.startswith("event: newCheckin\ndata: ")
    assert frame.endswith("\n\n")
    payload = json.loads(frame.split("data: ", 1)[1])
    assert payload == {
        "type": "newCheckin",
        "eventId": "evt-1",
        "registrationId": "AB12CD34",
        "checkedInCount": 7,
    }


@pytest.mark.asyncio
async def test_stream_yields_greeting_then_messages():
    broker = NotificationBroker(queue_size=5)
    frames = stream(broker, "evt-1", keepalive=5)

    assert await frames.__anext__() == ": connected to evt-1\n\n"
    assert broker.subscriber_count("evt-1") == 1

    broker.publish(new_checkin("evt-1", "AB12CD34", 1))
    frame = await asyncio.wait_for(frames.__anext__(), timeout=1)
    assert frame.startswith("event: newCheckin\n")

    await frames.aclose()
    assert broker.subscriber_count("evt-1") == 0


@pytest.mark.asyncio
async def test_stream_sends_keepalive_when_idle():
    broker = NotificationBroker(queue_size=5)
    frames = stream(broker, "evt-1", keepalive=0.01)

    await frames.__anext__()
    assert await asyncio.wait_for(frames.__anext__(), timeout=1) == ": keep-alive\n\n"
    await frames.aclose()
