"""
Notification fan-out for live dashboards.

In-process publish/subscribe keyed by event id. Each subscriber owns a
bounded queue; publishing never blocks and drops the message for a full
queue. Delivery is at-most-once with no persistence or replay: a dashboard
that reconnects re-reads the aggregate and continues from there.
"""

import asyncio
import json
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

from eventdesk.core.config import get_settings
from eventdesk.core.logging import get_logger
from eventdesk.core.metrics import notification_subscribers, record_notification
from eventdesk.domain import Registration

logger = get_logger(__name__)

NEW_REGISTRATION = "newRegistration"
NEW_CHECKIN = "newCheckin"


@dataclass(frozen=True)
class Notification:
    type: str
    event_id: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "eventId": self.event_id, **self.payload}


def new_registration(registration: Registration) -> Notification:
    return Notification(
        type=NEW_REGISTRATION,
        event_id=registration.event_id,
        payload={
            "registration": {
                "registrationId": registration.registration_id,
                "name": registration.name,
                "email": registration.email,
                "ticketTier": registration.ticket_tier,
                "registrationType": registration.registration_type.value,
                "createdAt": registration.created_at.isoformat() if registration.created_at else None,
            }
        },
    )


def new_checkin(event_id: str, registration_id: str, checked_in_count: int) -> Notification:
    return Notification(
        type=NEW_CHECKIN,
        event_id=event_id,
        payload={"registrationId": registration_id, "checkedInCount": checked_in_count},
    )


@dataclass(eq=False)
class Subscription:
    event_id: str
    queue: asyncio.Queue = field(repr=False)


class NotificationBroker:
    """Registry of subscriber queues grouped by event id."""

    def __init__(self, queue_size: Optional[int] = None) -> None:
        self._queue_size = queue_size or get_settings().NOTIFICATION_QUEUE_SIZE
        self._subscribers: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, event_id: str) -> Subscription:
        subscription = Subscription(event_id=event_id, queue=asyncio.Queue(maxsize=self._queue_size))
        self._subscribers[event_id].add(subscription)
        notification_subscribers.inc()
        logger.info("subscriber_added", event_id=event_id, subscribers=len(self._subscribers[event_id]))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.event_id)
        if not subscribers or subscription not in subscribers:
            return
        subscribers.discard(subscription)
        notification_subscribers.dec()
        if not subscribers:
            del self._subscribers[subscription.event_id]
        logger.info("subscriber_removed", event_id=subscription.event_id)

    def subscriber_count(self, event_id: str) -> int:
        return len(self._subscribers.get(event_id, ()))

    def publish(self, notification: Notification) -> int:
        """Offer a message to every subscriber of its event. Returns the number delivered."""
        delivered = 0
        for subscription in list(self._subscribers.get(notification.event_id, ())):
            try:
                subscription.queue.put_nowait(notification)
            except asyncio.QueueFull:
                record_notification(notification.type, "dropped")
                logger.warning(
                    "notification_dropped",
                    event_id=notification.event_id,
                    type=notification.type,
                )
                continue
            delivered += 1
            record_notification(notification.type, "delivered")
        return delivered


def format_sse(notification: Notification) -> str:
    return f"event: {notification.type}\ndata: {json.dumps(notification.to_dict())}\n\n"


async def stream(
    broker: NotificationBroker,
    event_id: str,
    keepalive: Optional[float] = None,
    subscription: Optional[Subscription] = None,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber until the client goes away."""
    interval = keepalive or get_settings().SSE_KEEPALIVE_SECONDS
    subscription = subscription or broker.subscribe(event_id)
    try:
        yield f": connected to {event_id}\n\n"
        while True:
            try:
                notification = await asyncio.wait_for(subscription.queue.get(), timeout=interval)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(notification)
    finally:
        broker.unsubscribe(subscription)


_broker: Optional[NotificationBroker] = None


def get_broker() -> NotificationBroker:
    """Process-wide broker singleton."""
    global _broker
    if _broker is None:
        _broker = NotificationBroker()
    return _broker
