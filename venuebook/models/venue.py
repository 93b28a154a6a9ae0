from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venuebook.db.base import Base
from venuebook.models._mixins import TimestampMixin

VENUE_DRAFT = "draft"
VENUE_PENDING = "pending_approval"
VENUE_APPROVED = "approved"
VENUE_REJECTED = "rejected"
VENUE_STATUSES = (VENUE_DRAFT, VENUE_PENDING, VENUE_APPROVED, VENUE_REJECTED)


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"
    __table_args__ = (
        CheckConstraint("min_booking_minutes > 0", name="ck_venues_min_booking_positive"),
        CheckConstraint(
            "max_booking_minutes IS NULL OR max_booking_minutes >= min_booking_minutes",
            name="ck_venues_max_ge_min",
        ),
        CheckConstraint("buffer_minutes >= 0", name="ck_venues_buffer_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    host_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    lat: Mapped[Decimal | None] = mapped_column(Numeric(10, 8), nullable=True)
    lng: Mapped[Decimal | None] = mapped_column(Numeric(11, 8), nullable=True)

    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    base_hourly_price_egp: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    min_booking_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    max_booking_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None = open ended
    buffer_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=VENUE_DRAFT, index=True)

    packages: Mapped[list["VenuePackage"]] = relationship("VenuePackage", back_populates="venue", cascade="all, delete-orphan")
    amenities: Mapped[list["VenueAmenity"]] = relationship("VenueAmenity", back_populates="venue", cascade="all, delete-orphan")


class VenuePackage(Base, TimestampMixin):
    __tablename__ = "venue_packages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hourly_price_egp: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    venue: Mapped[Venue] = relationship("Venue", back_populates="packages")


class VenueAmenity(Base, TimestampMixin):
    __tablename__ = "venue_amenities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    venue: Mapped[Venue] = relationship("Venue", back_populates="amenities")
