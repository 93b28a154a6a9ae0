from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_CEILING, Decimal

_MICROS_PER_HOUR = Decimal(3_600_000_000)


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 99.9 from becoming 99.900000000000005684...
    return Decimal(str(value))


def hourly_rate(venue, package=None) -> Decimal:
    """Package hourly price if a package is chosen, else the venue base rate."""
    if package is not None:
        return _as_decimal(package.hourly_price_egp)
    return _as_decimal(venue.base_hourly_price_egp)


def total_price(duration: timedelta, rate) -> int:
    """ceil(duration_minutes / 60 * rate), never undercharging partial hours."""
    micros = Decimal(duration // timedelta(microseconds=1))
    amount = micros * _as_decimal(rate) / _MICROS_PER_HOUR
    return int(amount.to_integral_value(rounding=ROUND_CEILING))


def price_booking(venue, duration: timedelta, package=None) -> int:
    return total_price(duration, hourly_rate(venue, package))
