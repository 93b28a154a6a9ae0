from __future__ import annotations

import logging
from datetime import date
from typing import Iterable
from zoneinfo import ZoneInfo

from venuebook.services.intervals import Interval, IntervalList, day_of_week, local_instant, parse_wall_clock

logger = logging.getLogger(__name__)


def open_intervals_for_date(rules: Iterable, d: date, tz: ZoneInfo) -> IntervalList:
    """Open intervals of a local date from weekly rules.

    Rules whose close time is not after their open time are skipped; the venue
    is closed on days without a usable rule.
    """
    weekday = day_of_week(d)
    intervals: list[Interval] = []
    for rule in rules:
        if rule.day_of_week != weekday:
            continue
        try:
            open_t = parse_wall_clock(rule.open_time)
            close_t = parse_wall_clock(rule.close_time)
        except (TypeError, ValueError):
            logger.warning("Skipping availability rule with unparseable times: %r-%r", rule.open_time, rule.close_time)
            continue
        if close_t <= open_t:
            logger.warning("Skipping availability rule with close %s not after open %s", close_t, open_t)
            continue
        intervals.append(Interval(local_instant(d, open_t, tz), local_instant(d, close_t, tz)))
    return IntervalList.from_intervals(intervals)


def open_intervals_for_dates(rules: Iterable, dates: Iterable[date], tz: ZoneInfo) -> IntervalList:
    rules = list(rules)
    out = IntervalList()
    for d in dates:
        out = out.union(open_intervals_for_date(rules, d, tz))
    return out
