from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.db.base import Base
from venuebook.models._mixins import TimestampMixin

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"

BOOKING_OVERLAP_CONSTRAINT = "bookings_no_overlap"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    guest_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    package_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("venue_packages.id"), nullable=True)

    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=BOOKING_CONFIRMED)  # confirmed/cancelled
    total_price_egp: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    guest_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    special_requests: Mapped[str] = mapped_column(Text, nullable=False, default="")

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_reason: Mapped[str] = mapped_column(String(255), nullable=False, default="")
