from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

NULLABLE_VENUE_FIELDS = frozenset({"lat", "lng", "max_booking_minutes"})


class VenueCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    category: str = Field(min_length=1, max_length=64)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1, max_length=128)
    lat: Decimal | None = Field(default=None, ge=-90, le=90)
    lng: Decimal | None = Field(default=None, ge=-180, le=180)
    capacity: int = Field(ge=1)
    base_hourly_price_egp: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    min_booking_minutes: int = Field(default=30, gt=0)
    max_booking_minutes: int | None = Field(default=None, gt=0)
    buffer_minutes: int = Field(default=30, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.max_booking_minutes is not None and self.max_booking_minutes < self.min_booking_minutes:
            raise ValueError("max_booking_minutes must be >= min_booking_minutes")
        return self


class VenueUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, min_length=1, max_length=64)
    address: str | None = Field(default=None, min_length=1)
    city: str | None = Field(default=None, min_length=1, max_length=128)
    lat: Decimal | None = Field(default=None, ge=-90, le=90)
    lng: Decimal | None = Field(default=None, ge=-180, le=180)
    capacity: int | None = Field(default=None, ge=1)
    base_hourly_price_egp: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    min_booking_minutes: int | None = Field(default=None, gt=0)
    max_booking_minutes: int | None = Field(default=None, gt=0)
    buffer_minutes: int | None = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def no_null_for_required(cls, data):
        if isinstance(data, dict):
            nulled = sorted(k for k, v in data.items() if v is None and k not in NULLABLE_VENUE_FIELDS)
            if nulled:
                raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return data


class VenueOut(BaseModel):
    id: str
    host_id: str
    title: str
    description: str
    category: str
    address: str
    city: str
    lat: Decimal | None
    lng: Decimal | None
    capacity: int
    base_hourly_price_egp: Decimal
    min_booking_minutes: int
    max_booking_minutes: int | None
    buffer_minutes: int
    status: str

    class Config:
        from_attributes = True


class PackageCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    hourly_price_egp: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class PackageOut(BaseModel):
    id: str
    venue_id: str
    name: str
    description: str
    hourly_price_egp: Decimal

    class Config:
        from_attributes = True


class AmenityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class AmenityOut(BaseModel):
    id: str
    venue_id: str
    name: str

    class Config:
        from_attributes = True


class VenueDetailOut(VenueOut):
    packages: list[PackageOut] = Field(default_factory=list)
    amenities: list[AmenityOut] = Field(default_factory=list)


class AdminStatsOut(BaseModel):
    users_total: int
    venues_by_status: dict[str, int]
    bookings_by_status: dict[str, int]
    confirmed_revenue_egp: Decimal
