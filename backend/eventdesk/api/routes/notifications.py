"""
Live dashboard feed over Server-Sent Events.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from eventdesk.services.notification_service import NotificationBroker, get_broker, stream

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/events/{event_id}/stream")
async def event_stream(event_id: str, broker: NotificationBroker = Depends(get_broker)):
    """
    newRegistration and newCheckin messages for one event, plus keep-alive
    comments. Best effort: nothing is replayed after a reconnect.
    """
    subscription = broker.subscribe(event_id)
    return StreamingResponse(
        stream(broker, event_id, subscription=subscription),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
