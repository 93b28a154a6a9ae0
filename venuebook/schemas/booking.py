from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from venuebook.schemas.common import UtcDatetime


class BookingCreate(BaseModel):
    venue_id: str
    start_at: UtcDatetime
    end_at: UtcDatetime
    package_id: str | None = None
    guest_count: int = Field(default=1, ge=1, le=100000)
    special_requests: str = Field(default="", max_length=2000)


class BookingCancelRequest(BaseModel):
    reason: str = Field(default="", max_length=255)


class BookingOut(BaseModel):
    id: str
    venue_id: str
    guest_id: str
    package_id: str | None
    start_at: UtcDatetime
    end_at: UtcDatetime
    status: str
    total_price_egp: Decimal
    guest_count: int
    special_requests: str
    cancelled_at: UtcDatetime | None
    cancel_reason: str

    class Config:
        from_attributes = True
