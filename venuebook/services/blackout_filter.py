from __future__ import annotations

from typing import Iterable

from venuebook.services.intervals import Interval, IntervalList, ensure_utc


def blackout_interval(blackout) -> Interval:
    return Interval(ensure_utc(blackout.start_at), ensure_utc(blackout.end_at))


def apply_blackouts(open_intervals: IntervalList, blackouts: Iterable) -> IntervalList:
    """Subtract every blackout window from the open intervals."""
    return open_intervals.subtract_all(blackout_interval(b) for b in blackouts)
