from __future__ import annotations

from datetime import datetime
from typing import Any


class BookingRejected(Exception):
    """Expected, recoverable outcome of validating a booking request.

    Carries the offending interval so callers can render a precise message.
    """

    code = "rejected"
    status_code = 400
    message = "Booking request rejected"

    def __init__(self, start_at: datetime | None = None, end_at: datetime | None = None, message: str | None = None):
        self.start_at = start_at
        self.end_at = end_at
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def detail(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.start_at is not None:
            out["start_at"] = self.start_at.isoformat()
        if self.end_at is not None:
            out["end_at"] = self.end_at.isoformat()
        return out


class InvalidRange(BookingRejected):
    code = "invalid_range"
    message = "End time must be after start time"


class DurationOutOfBounds(BookingRejected):
    code = "duration_out_of_bounds"
    message = "Booking duration is outside the allowed range"

    def __init__(
        self,
        start_at: datetime,
        end_at: datetime,
        *,
        duration_minutes: float,
        min_minutes: int,
        max_minutes: int | None,
    ):
        self.duration_minutes = duration_minutes
        self.min_minutes = min_minutes
        self.max_minutes = max_minutes
        if duration_minutes < min_minutes:
            message = f"Minimum booking duration is {min_minutes} minutes"
        else:
            message = f"Maximum booking duration is {max_minutes} minutes"
        super().__init__(start_at, end_at, message)

    def detail(self) -> dict[str, Any]:
        out = super().detail()
        out.update(
            duration_minutes=self.duration_minutes,
            min_minutes=self.min_minutes,
            max_minutes=self.max_minutes,
        )
        return out


class OutsideAvailability(BookingRejected):
    code = "outside_availability"
    message = "Venue is not available for the selected time"


class SchedulingConflict(BookingRejected):
    code = "conflict"
    status_code = 409
    message = "Time slot already booked"

    def __init__(self, start_at: datetime, end_at: datetime, conflicting_booking_id: str | None = None):
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(start_at, end_at)

    def detail(self) -> dict[str, Any]:
        out = super().detail()
        out["conflicting_booking_id"] = self.conflicting_booking_id
        return out


class CapacityExceeded(BookingRejected):
    code = "capacity_exceeded"

    def __init__(self, guest_count: int, capacity: int):
        self.guest_count = guest_count
        self.capacity = capacity
        super().__init__(message=f"Venue capacity is {capacity} people")

    def detail(self) -> dict[str, Any]:
        out = super().detail()
        out.update(guest_count=self.guest_count, capacity=self.capacity)
        return out


class VenueNotBookable(BookingRejected):
    code = "venue_not_bookable"
    status_code = 409
    message = "Venue is not available for booking"


class PersistenceError(Exception):
    """Infrastructure failure (database unavailable, lost connection).

    Distinct from BookingRejected: callers decide on retry/backoff.
    """
