"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from eventdesk.api.routes import (
    admin,
    auth,
    bookings,
    checkins,
    consultations,
    events,
    notifications,
    registrations,
)

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(admin.router)
api_router.include_router(events.router)
api_router.include_router(registrations.router)
api_router.include_router(checkins.router)
api_router.include_router(bookings.router)
api_router.include_router(consultations.router)
api_router.include_router(notifications.router)
