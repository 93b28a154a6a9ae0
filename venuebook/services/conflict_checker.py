from __future__ import annotations

from typing import Iterable

from venuebook.services.intervals import Interval, ensure_utc

CONFIRMED = "confirmed"


def find_conflicts(proposed: Interval, buffer_minutes: int, bookings: Iterable) -> list:
    """Confirmed bookings whose buffered window overlaps the proposed interval.

    Conflict rule: proposed.start < booking.end + buffer and
    booking.start - buffer < proposed.end. Cancelled bookings are ignored.
    """
    out = []
    for booking in bookings:
        if booking.status != CONFIRMED:
            continue
        blocked = Interval(ensure_utc(booking.start_at), ensure_utc(booking.end_at)).padded(buffer_minutes)
        if proposed.overlaps(blocked):
            out.append(booking)
    out.sort(key=lambda b: ensure_utc(b.start_at))
    return out


def first_conflict(proposed: Interval, buffer_minutes: int, bookings: Iterable):
    conflicts = find_conflicts(proposed, buffer_minutes, bookings)
    return conflicts[0] if conflicts else None
