from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from venuebook.core.config import get_settings
from venuebook.core.deps import get_db, require_roles
from venuebook.models.availability_rule import AvailabilityRule
from venuebook.models.blackout import Blackout
from venuebook.models.booking import Booking
from venuebook.models.user import User
from venuebook.models.venue import VENUE_APPROVED
from venuebook.schemas.availability import AvailabilityCheckResponse, OpenWindow, OpenWindowsResponse
from venuebook.schemas.venue import VenueCreate, VenueDetailOut, VenueOut, VenueUpdate
from venuebook.services.audit_service import write_audit_log
from venuebook.services.availability_service import check_availability, open_windows, venue_calendar
from venuebook.services.booking_service import get_venue
from venuebook.services.venue_service import (
    VenueSearchFilters,
    create_venue,
    ensure_can_manage,
    search_venues,
    submit_for_approval,
    update_venue,
)

router = APIRouter()


def _get_public_venue(db: Session, venue_id: str):
    venue = get_venue(db, venue_id)
    if venue.status != VENUE_APPROVED:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue


@router.get("/search", response_model=list[VenueOut])
def search(
    q: str | None = None,
    city: str | None = None,
    category: str | None = None,
    capacity_min: int | None = Query(default=None, ge=1),
    price_min: Decimal | None = Query(default=None, ge=0),
    price_max: Decimal | None = Query(default=None, ge=0),
    available_at: datetime | None = None,
    duration_minutes: int | None = Query(default=None, ge=1),
    amenities: list[str] | None = Query(default=None),
    has_packages: bool | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    filters = VenueSearchFilters(
        q=q,
        city=city,
        category=category,
        capacity_min=capacity_min,
        price_min=price_min,
        price_max=price_max,
        available_at=available_at,
        duration_minutes=duration_minutes,
        amenities=amenities,
        has_packages=has_packages,
        page=page,
        limit=limit,
    )
    return search_venues(db, filters)


@router.post("", response_model=VenueOut, status_code=201)
def create(payload: VenueCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(require_roles("host", "admin"))):
    v = create_venue(db, host=user, data=payload.model_dump())
    write_audit_log(db, actor=user, action_type="VENUE_CREATE", target_type="venue", target_id=v.id, summary="Created venue", request=request)
    return v


@router.get("/{venue_id}", response_model=VenueDetailOut)
def get_one(venue_id: str, db: Session = Depends(get_db)):
    return _get_public_venue(db, venue_id)


@router.patch("/{venue_id}", response_model=VenueOut)
def update(venue_id: str, payload: VenueUpdate, request: Request, db: Session = Depends(get_db), user: User = Depends(require_roles("host", "admin"))):
    v = get_venue(db, venue_id)
    ensure_can_manage(user, v)
    data = payload.model_dump(exclude_unset=True)
    v = update_venue(db, venue=v, data=data)

    write_audit_log(db, actor=user, action_type="VENUE_UPDATE", target_type="venue", target_id=v.id, summary="Updated venue", diff_json={"keys": sorted(data.keys())}, request=request)
    return v


@router.delete("/{venue_id}")
def delete(venue_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(require_roles("host", "admin"))):
    v = get_venue(db, venue_id)
    ensure_can_manage(user, v)

    # Bookings are kept for history, so a booked venue cannot be removed
    has_bookings = db.execute(select(Booking.id).where(Booking.venue_id == v.id).limit(1)).first() is not None
    if has_bookings:
        raise HTTPException(status_code=409, detail="Venue has bookings")

    for model in (AvailabilityRule, Blackout):
        for row in db.execute(select(model).where(model.venue_id == v.id)).scalars().all():
            db.delete(row)
    db.delete(v)
    db.commit()

    write_audit_log(db, actor=user, action_type="VENUE_DELETE", target_type="venue", target_id=venue_id, summary="Deleted venue", request=request)
    return {"ok": True}


@router.post("/{venue_id}/submit", response_model=VenueOut)
def submit(venue_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(require_roles("host", "admin"))):
    v = get_venue(db, venue_id)
    ensure_can_manage(user, v)
    v = submit_for_approval(db, venue=v)
    write_audit_log(db, actor=user, action_type="VENUE_SUBMIT", target_type="venue", target_id=v.id, summary="Submitted venue for approval", request=request)
    return v


@router.get("/{venue_id}/availability", response_model=AvailabilityCheckResponse)
def availability(
    venue_id: str,
    start: datetime,
    duration_minutes: int = Query(ge=1),
    db: Session = Depends(get_db),
):
    available, reason = check_availability(db, venue_id=venue_id, start_at=start, duration_minutes=duration_minutes)
    return AvailabilityCheckResponse(available=available, reason=reason)


@router.get("/{venue_id}/open-windows", response_model=OpenWindowsResponse)
def windows(venue_id: str, date: date, db: Session = Depends(get_db)):
    venue = _get_public_venue(db, venue_id)
    ivs = open_windows(db, venue=venue, day=date)
    return OpenWindowsResponse(
        venue_id=venue.id,
        date=date,
        windows=[OpenWindow(start_at=iv.start, end_at=iv.end) for iv in ivs],
    )


@router.get("/{venue_id}/calendar", response_model=list[OpenWindowsResponse])
def calendar(venue_id: str, from_date: date, to_date: date, db: Session = Depends(get_db)):
    if from_date > to_date:
        raise HTTPException(status_code=400, detail="Invalid date range")
    if (to_date - from_date).days > get_settings().calendar_max_days:
        raise HTTPException(status_code=400, detail="Date range too long")
    venue = _get_public_venue(db, venue_id)
    return [
        OpenWindowsResponse(
            venue_id=venue.id,
            date=day["date"],
            windows=[OpenWindow(start_at=iv.start, end_at=iv.end) for iv in day["windows"]],
        )
        for day in venue_calendar(db, venue=venue, from_date=from_date, to_date=to_date)
    ]
