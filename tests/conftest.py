import os

# Settings are cached on first use, so the environment has to be in place
# before anything from venuebook is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

from datetime import date, time
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import venuebook.models  # noqa: F401
from venuebook.core.deps import get_db
from venuebook.core.security import create_access_token, hash_password
from venuebook.db.base import Base
from venuebook.main import app
from venuebook.models.availability_rule import AvailabilityRule
from venuebook.models.user import ROLE_GUEST, User
from venuebook.models.venue import VENUE_APPROVED, Venue
from venuebook.services.intervals import local_instant

CAIRO = ZoneInfo("Africa/Cairo")
MONDAY = date(2024, 6, 3)
SATURDAY = date(2024, 6, 1)

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def at(d: date, hhmm: str):
    """UTC instant of a Cairo wall-clock time."""
    return local_instant(d, time.fromisoformat(hhmm), CAIRO)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: str = ROLE_GUEST, *, email: str | None = None, password: str = "password123") -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            name=f"{role.title()} {counter['n']}",
            hashed_password=hash_password(password),
            role=role,
            is_active=True,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_venue(db):
    def _make(host: User, *, status: str = VENUE_APPROVED, hours: dict | None = None, **overrides) -> Venue:
        fields = dict(
            title="Nile Hall",
            description="Riverside event hall",
            category="hall",
            address="1 Corniche St",
            city="Cairo",
            capacity=50,
            base_hourly_price_egp=Decimal("100.00"),
            min_booking_minutes=30,
            max_booking_minutes=None,
            buffer_minutes=15,
        )
        fields.update(overrides)
        venue = Venue(host_id=host.id, status=status, **fields)
        db.add(venue)
        db.flush()

        # Monday 09:00-17:00 unless told otherwise
        for dow, (open_t, close_t) in (hours if hours is not None else {1: ("09:00", "17:00")}).items():
            db.add(
                AvailabilityRule(
                    venue_id=venue.id,
                    day_of_week=dow,
                    open_time=time.fromisoformat(open_t),
                    close_time=time.fromisoformat(close_t),
                )
            )
        db.commit()
        return venue

    return _make


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, {"role": user.role})
    return {"Authorization": f"Bearer {token}"}
