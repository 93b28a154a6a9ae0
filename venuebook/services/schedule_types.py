from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time


# Plain value types accepted by the scheduling core. ORM rows with the same
# attribute names are accepted as well.


@dataclass(frozen=True)
class WeeklyRule:
    day_of_week: int  # 0 = Sunday
    open_time: time | str
    close_time: time | str


@dataclass(frozen=True)
class BlackoutWindow:
    start_at: datetime
    end_at: datetime
    reason: str = ""


@dataclass(frozen=True)
class ExistingBooking:
    id: str
    start_at: datetime
    end_at: datetime
    status: str = "confirmed"


@dataclass(frozen=True)
class VenueTerms:
    id: str
    min_booking_minutes: int
    max_booking_minutes: int | None
    buffer_minutes: int
