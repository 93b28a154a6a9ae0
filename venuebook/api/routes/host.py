from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from venuebook.core.deps import get_db, require_roles
from venuebook.models.user import User
from venuebook.schemas.booking import BookingOut
from venuebook.schemas.venue import VenueOut
from venuebook.services.booking_service import list_host_bookings
from venuebook.services.venue_service import list_host_venues

router = APIRouter()


@router.get("/venues", response_model=list[VenueOut])
def host_venues(db: Session = Depends(get_db), user: User = Depends(require_roles("host", "admin"))):
    return list_host_venues(db, user.id)


@router.get("/bookings", response_model=list[BookingOut])
def host_bookings(db: Session = Depends(get_db), user: User = Depends(require_roles("host", "admin"))):
    return list_host_bookings(db, user.id)
