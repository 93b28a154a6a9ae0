from __future__ import annotations

from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from venuebook.core.errors import BookingRejected, VenueNotBookable
from venuebook.models.venue import VENUE_APPROVED, Venue
from venuebook.services.availability_rules import open_intervals_for_date
from venuebook.services.blackout_filter import apply_blackouts
from venuebook.services.booking_service import (
    get_venue,
    load_blackouts,
    load_confirmed_bookings,
    load_rules,
    validate_for_venue,
    venue_timezone,
)
from venuebook.services.intervals import Interval, ensure_utc, local_instant


def _daterange(start: date, end: date):
    cur = start
    while cur <= end:
        yield cur
        cur = cur + timedelta(days=1)


def check_availability(db: Session, *, venue_id: str, start_at: datetime, duration_minutes: int) -> tuple[bool, str | None]:
    """Would a booking of `duration_minutes` starting at `start_at` be accepted?

    Returns (available, rejection code).
    """
    venue = get_venue(db, venue_id)
    start_at = ensure_utc(start_at)
    end_at = start_at + timedelta(minutes=duration_minutes)
    if venue.status != VENUE_APPROVED:
        return False, VenueNotBookable.code
    try:
        validate_for_venue(db, venue, start_at=start_at, end_at=end_at)
    except BookingRejected as exc:
        return False, exc.code
    return True, None


def open_windows(db: Session, *, venue: Venue, day: date) -> list[Interval]:
    """Bookable windows of a local date.

    Weekly hours minus blackouts minus confirmed bookings padded by the
    buffer. Windows shorter than the venue minimum are dropped.
    """
    tz = venue_timezone()
    day_start = local_instant(day, datetime.min.time(), tz)
    day_end = local_instant(day + timedelta(days=1), datetime.min.time(), tz)

    windows = open_intervals_for_date(load_rules(db, venue.id), day, tz)
    windows = apply_blackouts(windows, load_blackouts(db, venue.id, day_start, day_end))

    bookings = load_confirmed_bookings(db, venue.id, day_start, day_end, venue.buffer_minutes)
    windows = windows.subtract_all(
        Interval(ensure_utc(b.start_at), ensure_utc(b.end_at)).padded(venue.buffer_minutes or 0) for b in bookings
    )

    min_len = timedelta(minutes=venue.min_booking_minutes)
    return [w for w in windows if w.duration >= min_len]


def venue_calendar(db: Session, *, venue: Venue, from_date: date, to_date: date) -> list[dict]:
    return [{"date": d, "windows": open_windows(db, venue=venue, day=d)} for d in _daterange(from_date, to_date)]
