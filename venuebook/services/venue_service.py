from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from fastapi import HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from venuebook.core.errors import BookingRejected
from venuebook.models.booking import BOOKING_CONFIRMED, Booking
from venuebook.models.user import ROLE_ADMIN, User
from venuebook.models.venue import (
    VENUE_APPROVED,
    VENUE_DRAFT,
    VENUE_PENDING,
    VENUE_REJECTED,
    VENUE_STATUSES,
    Venue,
    VenueAmenity,
)
from venuebook.services.booking_service import validate_for_venue

logger = logging.getLogger(__name__)


@dataclass
class VenueSearchFilters:
    q: str | None = None
    city: str | None = None
    category: str | None = None
    capacity_min: int | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    available_at: datetime | None = None
    duration_minutes: int | None = None
    amenities: list[str] | None = None
    has_packages: bool | None = None
    page: int = 1
    limit: int = 20


def ensure_can_manage(user: User, venue: Venue) -> None:
    if user.role != ROLE_ADMIN and venue.host_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized")


def check_duration_bounds(min_minutes: int, max_minutes: int | None) -> None:
    if min_minutes <= 0:
        raise HTTPException(status_code=400, detail="min_booking_minutes must be positive")
    if max_minutes is not None and max_minutes < min_minutes:
        raise HTTPException(status_code=400, detail="max_booking_minutes must be >= min_booking_minutes")


def create_venue(db: Session, *, host: User, data: dict[str, Any]) -> Venue:
    check_duration_bounds(data.get("min_booking_minutes", 30), data.get("max_booking_minutes"))
    venue = Venue(host_id=host.id, status=VENUE_DRAFT, **data)
    db.add(venue)
    db.commit()
    db.refresh(venue)
    logger.info("Venue %s created by %s", venue.id, host.id)
    return venue


def update_venue(db: Session, *, venue: Venue, data: dict[str, Any]) -> Venue:
    min_minutes = data.get("min_booking_minutes", venue.min_booking_minutes)
    max_minutes = data["max_booking_minutes"] if "max_booking_minutes" in data else venue.max_booking_minutes
    check_duration_bounds(min_minutes, max_minutes)
    for k, v in data.items():
        setattr(venue, k, v)
    db.commit()
    db.refresh(venue)
    return venue


def submit_for_approval(db: Session, *, venue: Venue) -> Venue:
    if venue.status not in (VENUE_DRAFT, VENUE_REJECTED):
        raise HTTPException(status_code=400, detail=f"Cannot submit a venue in status {venue.status}")
    venue.status = VENUE_PENDING
    db.commit()
    db.refresh(venue)
    return venue


def set_venue_status(db: Session, *, venue: Venue, status: str) -> Venue:
    if status not in VENUE_STATUSES:
        raise HTTPException(status_code=400, detail="Unknown venue status")
    venue.status = status
    db.commit()
    db.refresh(venue)
    logger.info("Venue %s moved to %s", venue.id, status)
    return venue


def list_host_venues(db: Session, host_id: str) -> list[Venue]:
    q = select(Venue).where(Venue.host_id == host_id).order_by(Venue.created_at.desc())
    return list(db.execute(q).scalars().all())


def list_venues_for_admin(db: Session, status: str | None = None) -> list[Venue]:
    q = select(Venue)
    if status:
        q = q.where(Venue.status == status)
    q = q.order_by(Venue.created_at.desc())
    return list(db.execute(q).scalars().all())


def _amenity_names(values: list[str] | None) -> list[str]:
    # Accepts repeated params and comma separated lists
    names: list[str] = []
    for value in values or []:
        for part in value.split(","):
            part = part.strip().lower()
            if part and part not in names:
                names.append(part)
    return names


def search_venues(db: Session, filters: VenueSearchFilters) -> list[Venue]:
    """Approved venues matching the filters.

    With `available_at` and `duration_minutes`, only venues that would accept
    that booking are returned. Every named amenity must be present (case
    insensitive).
    """
    q = select(Venue).where(Venue.status == VENUE_APPROVED)
    if filters.q:
        like = f"%{filters.q.strip()}%"
        q = q.where(or_(Venue.title.ilike(like), Venue.description.ilike(like)))
    if filters.city:
        q = q.where(func.lower(Venue.city) == filters.city.strip().lower())
    if filters.category:
        q = q.where(Venue.category == filters.category)
    if filters.capacity_min is not None:
        q = q.where(Venue.capacity >= filters.capacity_min)
    if filters.price_min is not None:
        q = q.where(Venue.base_hourly_price_egp >= filters.price_min)
    if filters.price_max is not None:
        q = q.where(Venue.base_hourly_price_egp <= filters.price_max)
    for name in _amenity_names(filters.amenities):
        q = q.where(Venue.amenities.any(func.lower(VenueAmenity.name) == name))
    if filters.has_packages is True:
        q = q.where(Venue.packages.any())
    elif filters.has_packages is False:
        q = q.where(~Venue.packages.any())
    q = q.order_by(Venue.created_at.desc(), Venue.id)

    venues = list(db.execute(q).scalars().all())

    if filters.available_at is not None and filters.duration_minutes:
        end_at = filters.available_at + timedelta(minutes=filters.duration_minutes)
        available = []
        for venue in venues:
            try:
                validate_for_venue(db, venue, start_at=filters.available_at, end_at=end_at)
            except BookingRejected:
                continue
            available.append(venue)
        venues = available

    offset = (max(filters.page, 1) - 1) * filters.limit
    return venues[offset : offset + filters.limit]


def admin_stats(db: Session) -> dict[str, Any]:
    venues_by_status = dict(db.execute(select(Venue.status, func.count(Venue.id)).group_by(Venue.status)).all())
    bookings_by_status = dict(db.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status)).all())
    revenue = db.execute(
        select(func.coalesce(func.sum(Booking.total_price_egp), 0)).where(Booking.status == BOOKING_CONFIRMED)
    ).scalar_one()
    users_total = db.execute(select(func.count(User.id))).scalar_one()
    return {
        "users_total": users_total,
        "venues_by_status": {s: venues_by_status.get(s, 0) for s in VENUE_STATUSES},
        "bookings_by_status": bookings_by_status,
        "confirmed_revenue_egp": Decimal(str(revenue)),
    }
