from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable
from zoneinfo import ZoneInfo

from venuebook.core.errors import DurationOutOfBounds, InvalidRange, OutsideAvailability, SchedulingConflict
from venuebook.services.availability_rules import open_intervals_for_dates
from venuebook.services.blackout_filter import apply_blackouts
from venuebook.services.conflict_checker import first_conflict
from venuebook.services.intervals import Interval, IntervalList, ensure_utc, local_dates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingDraft:
    """A booking request that passed validation, ready for pricing and persistence."""

    venue_id: str
    start_at: datetime
    end_at: datetime

    @property
    def interval(self) -> Interval:
        return Interval(self.start_at, self.end_at)

    @property
    def duration_minutes(self) -> float:
        return self.interval.minutes


def bookable_intervals(
    venue,
    *,
    rules: Iterable,
    blackouts: Iterable,
    start_at: datetime,
    end_at: datetime,
    tz: ZoneInfo,
) -> IntervalList:
    """Open-minus-blackout intervals for every local date in [start_at, end_at)."""
    open_ivs = open_intervals_for_dates(rules, local_dates(start_at, end_at, tz), tz)
    return apply_blackouts(open_ivs, blackouts)


def validate_booking(
    venue,
    *,
    start_at: datetime,
    end_at: datetime,
    rules: Iterable,
    blackouts: Iterable,
    bookings: Iterable,
    tz: ZoneInfo,
) -> BookingDraft:
    """Accept or reject a booking request for `venue`.

    Checks run in order and stop at the first failure: range, duration,
    availability (weekly rules minus blackouts), then conflicts with confirmed
    bookings padded by the venue buffer. Raises a BookingRejected subclass.
    """
    start_at = ensure_utc(start_at)
    end_at = ensure_utc(end_at)

    if end_at <= start_at:
        raise InvalidRange(start_at, end_at)

    proposed = Interval(start_at, end_at)
    minutes = proposed.minutes
    max_minutes = venue.max_booking_minutes
    if minutes < venue.min_booking_minutes or (max_minutes is not None and minutes > max_minutes):
        raise DurationOutOfBounds(
            start_at,
            end_at,
            duration_minutes=minutes,
            min_minutes=venue.min_booking_minutes,
            max_minutes=max_minutes,
        )

    windows = bookable_intervals(venue, rules=rules, blackouts=blackouts, start_at=start_at, end_at=end_at, tz=tz)
    if not windows.contains(proposed):
        raise OutsideAvailability(start_at, end_at)

    conflict = first_conflict(proposed, venue.buffer_minutes or 0, bookings)
    if conflict is not None:
        raise SchedulingConflict(start_at, end_at, conflicting_booking_id=conflict.id)

    logger.debug("Booking %s-%s accepted for venue %s", start_at, end_at, venue.id)
    return BookingDraft(venue_id=venue.id, start_at=start_at, end_at=end_at)
