from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator
from zoneinfo import ZoneInfo

UTC = timezone.utc


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime.

    Naive values are treated as UTC (SQLite drops tzinfo on round trip).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_wall_clock(value: str | time) -> time:
    """Parse "HH:MM" or "HH:MM:SS" into a time. Raises ValueError."""
    if isinstance(value, time):
        return value
    return time.fromisoformat(value.strip())


def local_instant(d: date, t: time, tz: ZoneInfo) -> datetime:
    """Interpret a local wall-clock date/time in tz and return the UTC instant."""
    return datetime.combine(d, t, tzinfo=tz).astimezone(UTC)


def day_of_week(d: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return (d.weekday() + 1) % 7


def local_dates(start_at: datetime, end_at: datetime, tz: ZoneInfo) -> list[date]:
    """Local calendar dates touched by [start_at, end_at)."""
    first = start_at.astimezone(tz).date()
    last_instant = end_at - timedelta(microseconds=1) if end_at > start_at else start_at
    last = last_instant.astimezone(tz).date()
    out = []
    cur = first
    while cur <= last:
        out.append(cur)
        cur = cur + timedelta(days=1)
    return out


@dataclass(frozen=True)
class Interval:
    """Half-open time interval [start, end)."""

    start: datetime
    end: datetime

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def minutes(self) -> float:
        return self.duration.total_seconds() / 60

    def overlaps(self, other: Interval) -> bool:
        # Touching endpoints are not an overlap
        return self.start < other.end and other.start < self.end

    def contains(self, other: Interval) -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersection(self, other: Interval) -> Interval | None:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return None
        return Interval(start, end)

    def subtract(self, other: Interval) -> list[Interval]:
        """Remove other from self, leaving zero, one or two pieces."""
        if not self.overlaps(other):
            return [self]
        pieces = []
        if self.start < other.start:
            pieces.append(Interval(self.start, other.start))
        if other.end < self.end:
            pieces.append(Interval(other.end, self.end))
        return pieces

    def padded(self, minutes: int) -> Interval:
        delta = timedelta(minutes=minutes)
        return Interval(self.start - delta, self.end + delta)


class IntervalList:
    """Sorted, non-overlapping intervals kept in two parallel arrays.

    Index i describes [starts[i], ends[i]). Touching intervals are merged.
    """

    __slots__ = ("starts", "ends")

    def __init__(self) -> None:
        self.starts: list[datetime] = []
        self.ends: list[datetime] = []

    @classmethod
    def from_intervals(cls, intervals: Iterable[Interval]) -> IntervalList:
        out = cls()
        for iv in sorted((iv for iv in intervals if not iv.is_empty), key=lambda iv: iv.start):
            if out.ends and iv.start <= out.ends[-1]:
                if iv.end > out.ends[-1]:
                    out.ends[-1] = iv.end
                continue
            out.starts.append(iv.start)
            out.ends.append(iv.end)
        return out

    def __len__(self) -> int:
        return len(self.starts)

    def __iter__(self) -> Iterator[Interval]:
        for i in range(len(self.starts)):
            yield Interval(self.starts[i], self.ends[i])

    def __getitem__(self, i: int) -> Interval:
        return Interval(self.starts[i], self.ends[i])

    def __repr__(self) -> str:
        return f"IntervalList({list(self)!r})"

    def to_list(self) -> list[Interval]:
        return list(self)

    def union(self, other: IntervalList) -> IntervalList:
        return IntervalList.from_intervals([*self, *other])

    def subtract(self, removed: Interval) -> IntervalList:
        out = IntervalList()
        for i in range(len(self.starts)):
            s, e = self.starts[i], self.ends[i]
            if not (s < removed.end and removed.start < e):
                out.starts.append(s)
                out.ends.append(e)
                continue
            if s < removed.start:
                out.starts.append(s)
                out.ends.append(removed.start)
            if removed.end < e:
                out.starts.append(removed.end)
                out.ends.append(e)
        return out

    def subtract_all(self, removed: Iterable[Interval]) -> IntervalList:
        out = self
        for iv in removed:
            out = out.subtract(iv)
        return out

    def covering_index(self, interval: Interval) -> int:
        """Index of the interval fully containing `interval`, or -1."""
        i = bisect_right(self.starts, interval.start) - 1
        if i >= 0 and interval.end <= self.ends[i]:
            return i
        return -1

    def contains(self, interval: Interval) -> bool:
        return self.covering_index(interval) >= 0
