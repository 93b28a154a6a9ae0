from __future__ import annotations

from fastapi import APIRouter

from venuebook.api.routes import admin, auth, bookings, host, venue_schedule, venues

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(venues.router, prefix="/venues", tags=["venues"])
api_router.include_router(venue_schedule.router, prefix="/venues", tags=["venue-schedule"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Host
api_router.include_router(host.router, prefix="/host", tags=["host"])

# Admin
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
