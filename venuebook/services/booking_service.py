from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from venuebook.core.config import get_settings
from venuebook.core.errors import BookingRejected, CapacityExceeded, PersistenceError, SchedulingConflict, VenueNotBookable
from venuebook.models.availability_rule import AvailabilityRule
from venuebook.models.blackout import Blackout
from venuebook.models.booking import BOOKING_CANCELLED, BOOKING_CONFIRMED, BOOKING_OVERLAP_CONSTRAINT, Booking
from venuebook.models.user import ROLE_ADMIN, User
from venuebook.models.venue import VENUE_APPROVED, Venue, VenuePackage
from venuebook.services.booking_validator import validate_booking
from venuebook.services.intervals import ensure_utc, local_dates, local_instant
from venuebook.services.pricing import price_booking

logger = logging.getLogger(__name__)


def venue_timezone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


@contextmanager
def persistence_guard(db: Session):
    """Roll back and surface infrastructure failures as PersistenceError.

    IntegrityError is left to the caller: it means a constraint rejected the
    data, not that the database is unavailable.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database failure")
        raise PersistenceError(str(exc)) from exc


def _is_overlap_violation(exc: IntegrityError) -> bool:
    diag = getattr(exc.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name == BOOKING_OVERLAP_CONSTRAINT
    return BOOKING_OVERLAP_CONSTRAINT in str(exc.orig)


def get_venue(db: Session, venue_id: str, *, for_update: bool = False) -> Venue:
    q = select(Venue).where(Venue.id == venue_id)
    if for_update:
        # Serializes booking creation per venue (no-op on SQLite)
        q = q.with_for_update()
    venue = db.execute(q).scalar_one_or_none()
    if venue is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue


def day_bounds(start_at: datetime, end_at: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants of local midnight before start_at and after end_at."""
    dates = local_dates(start_at, end_at, tz)
    first = local_instant(dates[0], datetime.min.time(), tz)
    last = local_instant(dates[-1] + timedelta(days=1), datetime.min.time(), tz)
    return first, last


def load_rules(db: Session, venue_id: str) -> list[AvailabilityRule]:
    q = select(AvailabilityRule).where(AvailabilityRule.venue_id == venue_id).order_by(AvailabilityRule.day_of_week, AvailabilityRule.open_time)
    return list(db.execute(q).scalars().all())


def load_blackouts(db: Session, venue_id: str, start_at: datetime, end_at: datetime) -> list[Blackout]:
    q = (
        select(Blackout)
        .where(Blackout.venue_id == venue_id)
        .where(Blackout.start_at < end_at)
        .where(Blackout.end_at > start_at)
    )
    return list(db.execute(q).scalars().all())


def load_confirmed_bookings(db: Session, venue_id: str, start_at: datetime, end_at: datetime, buffer_minutes: int) -> list[Booking]:
    pad = timedelta(minutes=buffer_minutes or 0)
    q = (
        select(Booking)
        .where(Booking.venue_id == venue_id)
        .where(Booking.status == BOOKING_CONFIRMED)
        .where(Booking.start_at < end_at + pad)
        .where(Booking.end_at > start_at - pad)
        .order_by(Booking.start_at)
    )
    return list(db.execute(q).scalars().all())


def get_package(db: Session, venue: Venue, package_id: str | None) -> VenuePackage | None:
    if not package_id:
        return None
    package = db.get(VenuePackage, package_id)
    if package is None or package.venue_id != venue.id:
        raise HTTPException(status_code=404, detail="Package not found")
    return package


def validate_for_venue(db: Session, venue: Venue, *, start_at: datetime, end_at: datetime):
    """Load the venue's schedule around [start_at, end_at) and run the validator."""
    tz = venue_timezone()
    start_at = ensure_utc(start_at)
    end_at = ensure_utc(end_at)
    if end_at > start_at:
        range_start, range_end = day_bounds(start_at, end_at, tz)
    else:
        range_start, range_end = start_at, start_at
    return validate_booking(
        venue,
        start_at=start_at,
        end_at=end_at,
        rules=load_rules(db, venue.id),
        blackouts=load_blackouts(db, venue.id, range_start, range_end),
        bookings=load_confirmed_bookings(db, venue.id, start_at, end_at, venue.buffer_minutes),
        tz=tz,
    )


def create_booking(
    db: Session,
    *,
    guest: User,
    venue_id: str,
    start_at: datetime,
    end_at: datetime,
    guest_count: int = 1,
    package_id: str | None = None,
    special_requests: str = "",
) -> Booking:
    """Validate, price and persist a confirmed booking in one transaction.

    The venue row stays locked from the read of existing bookings until the
    insert commits, so two concurrent requests cannot both pass the conflict
    check for the same slot.
    """
    with persistence_guard(db):
        try:
            venue = get_venue(db, venue_id, for_update=True)
            if venue.status != VENUE_APPROVED:
                raise VenueNotBookable(ensure_utc(start_at), ensure_utc(end_at))
            if guest_count > venue.capacity:
                raise CapacityExceeded(guest_count, venue.capacity)
            package = get_package(db, venue, package_id)

            draft = validate_for_venue(db, venue, start_at=start_at, end_at=end_at)
            total = price_booking(venue, draft.interval.duration, package)

            booking = Booking(
                venue_id=venue.id,
                guest_id=guest.id,
                package_id=package.id if package else None,
                start_at=draft.start_at,
                end_at=draft.end_at,
                status=BOOKING_CONFIRMED,
                total_price_egp=Decimal(total),
                guest_count=guest_count,
                special_requests=special_requests or "",
            )
            db.add(booking)
            db.commit()
        except (BookingRejected, HTTPException) as exc:
            db.rollback()
            if isinstance(exc, BookingRejected):
                logger.info("Booking rejected for venue %s: %s", venue_id, exc.code)
            raise
        except IntegrityError as exc:
            db.rollback()
            if not _is_overlap_violation(exc):
                raise
            logger.warning("Overlap constraint rejected booking for venue %s", venue_id)
            raise SchedulingConflict(ensure_utc(start_at), ensure_utc(end_at)) from exc

    db.refresh(booking)
    logger.info("Booking %s confirmed for venue %s (%s EGP)", booking.id, venue.id, total)
    return booking


def cancel_booking(db: Session, *, booking: Booking, reason: str = "") -> bool:
    """Move a booking to cancelled. Returns False if it already was."""
    if booking.status == BOOKING_CANCELLED:
        return False
    with persistence_guard(db):
        booking.status = BOOKING_CANCELLED
        booking.cancel_reason = reason[:255]
        booking.cancelled_at = datetime.now(timezone.utc)
        db.commit()
    logger.info("Booking %s cancelled", booking.id)
    return True


def can_access_booking(db: Session, booking: Booking, user: User) -> bool:
    if user.role == ROLE_ADMIN or booking.guest_id == user.id:
        return True
    venue = db.get(Venue, booking.venue_id)
    return venue is not None and venue.host_id == user.id


def get_booking_for_user(db: Session, booking_id: str, user: User) -> Booking:
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    if not can_access_booking(db, booking, user):
        raise HTTPException(status_code=403, detail="Not authorized")
    return booking


def list_guest_bookings(db: Session, guest_id: str) -> list[Booking]:
    q = select(Booking).where(Booking.guest_id == guest_id).order_by(Booking.start_at.desc())
    return list(db.execute(q).scalars().all())


def list_host_bookings(db: Session, host_id: str) -> list[Booking]:
    q = (
        select(Booking)
        .join(Venue, Venue.id == Booking.venue_id)
        .where(Venue.host_id == host_id)
        .order_by(Booking.start_at.desc())
    )
    return list(db.execute(q).scalars().all())


def list_all_bookings(db: Session, *, status: str | None = None, limit: int = 1000) -> list[Booking]:
    q = select(Booking)
    if status:
        q = q.where(Booking.status == status)
    q = q.order_by(Booking.start_at.desc()).limit(limit)
    return list(db.execute(q).scalars().all())
