from datetime import timedelta
from decimal import Decimal

from venuebook.services.pricing import hourly_rate, price_booking, total_price


class _Venue:
    base_hourly_price_egp = Decimal("100.00")


class _Package:
    hourly_price_egp = Decimal("250.00")


def test_ninety_minutes_at_one_hundred():
    assert total_price(timedelta(minutes=90), Decimal("100")) == 150


def test_partial_minute_rounds_up():
    # 91 / 60 * 100 = 151.67
    assert total_price(timedelta(minutes=91), Decimal("100")) == 152


def test_whole_hours_are_exact():
    assert total_price(timedelta(hours=3), 100) == 300


def test_float_rate_does_not_drift():
    assert total_price(timedelta(hours=1), 99.9) == 100
    assert total_price(timedelta(hours=10), 99.9) == 999


def test_package_rate_overrides_base():
    assert hourly_rate(_Venue()) == Decimal("100.00")
    assert hourly_rate(_Venue(), _Package()) == Decimal("250.00")
    assert price_booking(_Venue(), timedelta(minutes=30), _Package()) == 125


def test_zero_rate_is_free():
    assert total_price(timedelta(minutes=45), Decimal("0")) == 0


def test_sub_second_remainder_is_charged():
    assert total_price(timedelta(minutes=90, milliseconds=500), Decimal("100")) == 151
    assert total_price(timedelta(minutes=90, microseconds=1), Decimal("100")) == 151
