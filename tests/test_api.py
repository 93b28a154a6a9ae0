from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import MONDAY, SATURDAY, at, auth_headers
from venuebook.core.config import get_settings
from venuebook.core.security import create_access_token
from venuebook.models.user import ROLE_ADMIN, ROLE_HOST
from venuebook.models.venue import VENUE_DRAFT
from venuebook.services import mailer


@pytest.fixture
def host(make_user):
    return make_user(ROLE_HOST)


@pytest.fixture
def guest(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN)


@pytest.fixture
def venue(host, make_venue):
    return make_venue(host)


def booking_payload(venue, start="10:00", end="11:00", d=MONDAY, **extra):
    payload = {
        "venue_id": venue.id,
        "start_at": at(d, start).isoformat(),
        "end_at": at(d, end).isoformat(),
    }
    payload.update(extra)
    return payload


class TestAuth:
    def test_register_login_me(self, client):
        r = client.post("/api/auth/register", json={"email": "Sara@Example.com", "name": "Sara", "password": "password123"})
        assert r.status_code == 201
        token = r.json()["access_token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "sara@example.com"
        assert me.json()["role"] == "guest"

        r = client.post("/api/auth/login", json={"email": "sara@example.com", "password": "password123"})
        assert r.status_code == 200

    def test_duplicate_email(self, client, guest):
        r = client.post("/api/auth/register", json={"email": guest.email, "name": "Dup", "password": "password123"})
        assert r.status_code == 409

    def test_bad_password(self, client, guest):
        r = client.post("/api/auth/login", json={"email": guest.email, "password": "wrong-password"})
        assert r.status_code == 401

    def test_missing_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_expired_token(self, client, guest):
        issued = datetime.now(timezone.utc) - timedelta(days=1)
        token = create_access_token(guest.id, {"role": guest.role}, now=issued)
        r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Token expired"

    def test_tampered_token(self, client, guest):
        token = auth_headers(guest)["Authorization"] + "x"
        assert client.get("/api/auth/me", headers={"Authorization": token}).status_code == 401

    def test_upgrade_to_host(self, client, guest):
        r = client.post("/api/auth/upgrade-to-host", headers=auth_headers(guest))
        assert r.status_code == 200
        token = r.json()["access_token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["role"] == "host"


class TestBookings:
    def test_create_and_fetch(self, client, guest, venue):
        r = client.post("/api/bookings", json=booking_payload(venue, "10:00", "11:30"), headers=auth_headers(guest))
        assert r.status_code == 201, r.text
        body = r.json()
        assert body["status"] == "confirmed"
        assert Decimal(body["total_price_egp"]) == Decimal("150")

        r = client.get(f"/api/bookings/{body['id']}", headers=auth_headers(guest))
        assert r.status_code == 200

        mine = client.get("/api/bookings/me", headers=auth_headers(guest)).json()
        assert [b["id"] for b in mine] == [body["id"]]

    def test_conflict_is_409(self, client, guest, venue):
        first = client.post("/api/bookings", json=booking_payload(venue, "10:00", "11:00"), headers=auth_headers(guest))
        assert first.status_code == 201

        r = client.post("/api/bookings", json=booking_payload(venue, "11:00", "12:00"), headers=auth_headers(guest))
        assert r.status_code == 409
        detail = r.json()["detail"]
        assert detail["code"] == "conflict"
        assert detail["conflicting_booking_id"] == first.json()["id"]

    def test_outside_availability_is_400(self, client, guest, venue):
        r = client.post("/api/bookings", json=booking_payload(venue, "08:00", "09:30"), headers=auth_headers(guest))
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "outside_availability"

    def test_blackout_rejects(self, client, guest, host, make_venue):
        v = make_venue(host, hours={6: ("09:00", "17:00")})
        r = client.post(
            f"/api/venues/{v.id}/blackouts",
            json={"start_at": at(SATURDAY, "12:00").isoformat(), "end_at": at(SATURDAY, "14:00").isoformat(), "reason": "private event"},
            headers=auth_headers(host),
        )
        assert r.status_code == 201, r.text

        r = client.post("/api/bookings", json=booking_payload(v, "11:00", "13:00", d=SATURDAY), headers=auth_headers(guest))
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "outside_availability"

    def test_capacity(self, client, guest, venue):
        r = client.post("/api/bookings", json=booking_payload(venue, guest_count=venue.capacity + 1), headers=auth_headers(guest))
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "capacity_exceeded"

    def test_hosts_cannot_book(self, client, host, venue):
        r = client.post("/api/bookings", json=booking_payload(venue), headers=auth_headers(host))
        assert r.status_code == 403

    def test_cancel_twice(self, client, guest, venue):
        created = client.post("/api/bookings", json=booking_payload(venue), headers=auth_headers(guest)).json()

        r1 = client.post(f"/api/bookings/{created['id']}/cancel", json={"reason": "sick"}, headers=auth_headers(guest))
        r2 = client.post(f"/api/bookings/{created['id']}/cancel", headers=auth_headers(guest))
        assert r1.status_code == 200
        assert r2.status_code == 200
        assert r1.json()["status"] == r2.json()["status"] == "cancelled"
        assert r2.json()["cancel_reason"] == "sick"

    def test_stranger_cannot_view(self, client, guest, venue, make_user):
        created = client.post("/api/bookings", json=booking_payload(venue), headers=auth_headers(guest)).json()
        stranger = make_user()
        assert client.get(f"/api/bookings/{created['id']}", headers=auth_headers(stranger)).status_code == 403

    def test_confirmation_and_host_emails_sent(self, client, guest, host, venue, monkeypatch):
        sent = []
        monkeypatch.setattr(get_settings(), "notifications_enabled", True)
        monkeypatch.setattr(mailer, "send_email", lambda to, subject, body: sent.append((to, subject)))

        r = client.post("/api/bookings", json=booking_payload(venue), headers=auth_headers(guest))
        assert r.status_code == 201
        assert sent == [
            (guest.email, f"Booking confirmed: {venue.title}"),
            (host.email, f"New Booking - {venue.title}"),
        ]

    def test_mail_failure_keeps_booking(self, client, guest, venue, monkeypatch):
        def broken(to, subject, body):
            raise ConnectionRefusedError("smtp down")

        monkeypatch.setattr(get_settings(), "notifications_enabled", True)
        monkeypatch.setattr(mailer, "send_email", broken)

        r = client.post("/api/bookings", json=booking_payload(venue), headers=auth_headers(guest))
        assert r.status_code == 201
        assert client.get("/api/bookings/me", headers=auth_headers(guest)).json()[0]["status"] == "confirmed"


class TestVenues:
    def venue_body(self, **overrides):
        body = {
            "title": "Garden Terrace",
            "category": "garden",
            "address": "5 Zamalek St",
            "city": "Cairo",
            "capacity": 80,
            "base_hourly_price_egp": "300.00",
            "min_booking_minutes": 60,
            "buffer_minutes": 30,
        }
        body.update(overrides)
        return body

    def test_moderation_flow(self, client, host, admin, guest):
        r = client.post("/api/venues", json=self.venue_body(), headers=auth_headers(host))
        assert r.status_code == 201, r.text
        venue_id = r.json()["id"]
        assert r.json()["status"] == VENUE_DRAFT

        # Not public yet
        assert client.get(f"/api/venues/{venue_id}").status_code == 404

        r = client.post(f"/api/venues/{venue_id}/submit", headers=auth_headers(host))
        assert r.json()["status"] == "pending_approval"

        pending = client.get("/api/admin/venues?status=pending_approval", headers=auth_headers(admin)).json()
        assert [v["id"] for v in pending] == [venue_id]

        r = client.patch(f"/api/admin/venues/{venue_id}/approve", headers=auth_headers(admin))
        assert r.json()["status"] == "approved"
        assert client.get(f"/api/venues/{venue_id}").status_code == 200

        logs = client.get("/api/admin/audit-logs", params={"target_id": venue_id}, headers=auth_headers(admin)).json()
        assert {"VENUE_CREATE", "VENUE_SUBMIT", "VENUE_APPROVE"} <= {x["action_type"] for x in logs}

    def test_guest_cannot_create_venue(self, client, guest):
        assert client.post("/api/venues", json=self.venue_body(), headers=auth_headers(guest)).status_code == 403

    def test_max_below_min_rejected(self, client, host):
        r = client.post("/api/venues", json=self.venue_body(min_booking_minutes=120, max_booking_minutes=60), headers=auth_headers(host))
        assert r.status_code == 422

    def test_other_host_cannot_edit(self, client, venue, make_user):
        intruder = make_user(ROLE_HOST)
        r = client.patch(f"/api/venues/{venue.id}", json={"title": "Mine now"}, headers=auth_headers(intruder))
        assert r.status_code == 403

    @pytest.mark.parametrize("field", ["title", "capacity", "buffer_minutes", "min_booking_minutes"])
    def test_patch_rejects_null_for_required_fields(self, client, host, venue, field):
        r = client.patch(f"/api/venues/{venue.id}", json={field: None}, headers=auth_headers(host))
        assert r.status_code == 422
        assert client.get(f"/api/venues/{venue.id}").status_code == 200

    def test_patch_can_clear_max_duration(self, client, host, make_venue):
        v = make_venue(host, max_booking_minutes=240)
        r = client.patch(f"/api/venues/{v.id}", json={"max_booking_minutes": None, "lat": None}, headers=auth_headers(host))
        assert r.status_code == 200, r.text
        assert r.json()["max_booking_minutes"] is None

    def test_amenities(self, client, host, venue, make_user):
        r = client.post(f"/api/venues/{venue.id}/amenities", json={"name": "Parking"}, headers=auth_headers(host))
        assert r.status_code == 201
        assert r.json()["name"] == "Parking"

        assert client.post(f"/api/venues/{venue.id}/amenities", json={"name": "parking"}, headers=auth_headers(host)).status_code == 409
        assert client.post(f"/api/venues/{venue.id}/amenities", json={"name": "x" * 101}, headers=auth_headers(host)).status_code == 422

        intruder = make_user(ROLE_HOST)
        assert client.post(f"/api/venues/{venue.id}/amenities", json={"name": "Pool"}, headers=auth_headers(intruder)).status_code == 403

        detail = client.get(f"/api/venues/{venue.id}").json()
        assert [a["name"] for a in detail["amenities"]] == ["Parking"]

    def test_search_by_amenities_and_packages(self, client, host, venue, make_venue):
        plain = make_venue(host, title="Plain Room")
        client.post(f"/api/venues/{venue.id}/amenities", json={"name": "WiFi"}, headers=auth_headers(host))
        client.post(f"/api/venues/{venue.id}/amenities", json={"name": "Parking"}, headers=auth_headers(host))
        client.post(f"/api/venues/{plain.id}/amenities", json={"name": "WiFi"}, headers=auth_headers(host))
        client.post(f"/api/venues/{plain.id}/packages", json={"name": "Basic", "hourly_price_egp": "50"}, headers=auth_headers(host))

        r = client.get("/api/venues/search", params={"amenities": ["wifi", "Parking"]})
        assert [v["id"] for v in r.json()] == [venue.id]

        r = client.get("/api/venues/search", params={"amenities": "wifi"})
        assert {v["id"] for v in r.json()} == {venue.id, plain.id}

        r = client.get("/api/venues/search", params={"has_packages": "true"})
        assert [v["id"] for v in r.json()] == [plain.id]

        r = client.get("/api/venues/search", params={"has_packages": "false"})
        assert [v["id"] for v in r.json()] == [venue.id]

    def test_rule_with_close_before_open_rejected(self, client, host, venue):
        r = client.post(
            f"/api/venues/{venue.id}/availability/rules",
            json={"day_of_week": 2, "open_time": "18:00", "close_time": "09:00"},
            headers=auth_headers(host),
        )
        assert r.status_code == 422

    def test_add_rule_opens_day(self, client, host, guest, venue):
        tuesday = MONDAY.replace(day=4)
        r = client.post(
            f"/api/venues/{venue.id}/availability/rules",
            json={"day_of_week": 2, "open_time": "10:00", "close_time": "14:00"},
            headers=auth_headers(host),
        )
        assert r.status_code == 201
        r = client.post("/api/bookings", json=booking_payload(venue, "10:00", "11:00", d=tuesday), headers=auth_headers(guest))
        assert r.status_code == 201, r.text

    def test_availability_endpoint(self, client, guest, venue):
        client.post("/api/bookings", json=booking_payload(venue, "10:00", "11:00"), headers=auth_headers(guest))

        r = client.get(f"/api/venues/{venue.id}/availability", params={"start": at(MONDAY, "11:00").isoformat(), "duration_minutes": 60})
        assert r.json() == {"available": False, "reason": "conflict"}

        r = client.get(f"/api/venues/{venue.id}/availability", params={"start": at(MONDAY, "11:15").isoformat(), "duration_minutes": 60})
        assert r.json() == {"available": True, "reason": None}

    def test_open_windows_endpoint(self, client, venue):
        r = client.get(f"/api/venues/{venue.id}/open-windows", params={"date": MONDAY.isoformat()})
        assert r.status_code == 200
        windows = r.json()["windows"]
        assert len(windows) == 1

    def test_search_by_availability(self, client, guest, venue, host, make_venue):
        closed_monday = make_venue(host, title="Weekend Loft", hours={6: ("09:00", "17:00")})

        r = client.get("/api/venues/search", params={"city": "cairo"})
        assert {v["id"] for v in r.json()} == {venue.id, closed_monday.id}

        r = client.get(
            "/api/venues/search",
            params={"available_at": at(MONDAY, "10:00").isoformat(), "duration_minutes": 60},
        )
        assert [v["id"] for v in r.json()] == [venue.id]

    def test_delete_booked_venue_conflicts(self, client, host, guest, venue):
        client.post("/api/bookings", json=booking_payload(venue), headers=auth_headers(guest))
        assert client.delete(f"/api/venues/{venue.id}", headers=auth_headers(host)).status_code == 409

    def test_package_booking(self, client, host, guest, venue):
        r = client.post(f"/api/venues/{venue.id}/packages", json={"name": "Premium", "hourly_price_egp": "200"}, headers=auth_headers(host))
        assert r.status_code == 201
        package_id = r.json()["id"]

        r = client.post("/api/bookings", json=booking_payload(venue, "10:00", "11:30", package_id=package_id), headers=auth_headers(guest))
        assert Decimal(r.json()["total_price_egp"]) == Decimal("300")

        assert client.delete(f"/api/venues/{venue.id}/packages/{package_id}", headers=auth_headers(host)).status_code == 409


class TestAdmin:
    def test_stats(self, client, admin, guest, venue):
        client.post("/api/bookings", json=booking_payload(venue, "10:00", "11:30"), headers=auth_headers(guest))
        r = client.get("/api/admin/stats", headers=auth_headers(admin))
        assert r.status_code == 200
        body = r.json()
        assert body["venues_by_status"]["approved"] == 1
        assert body["bookings_by_status"] == {"confirmed": 1}
        assert Decimal(body["confirmed_revenue_egp"]) == Decimal("150")

    def test_requires_admin(self, client, host):
        assert client.get("/api/admin/stats", headers=auth_headers(host)).status_code == 403


def test_health(client):
    assert client.get("/health").json()["ok"] is True


class TestSchedule:
    def test_bulk_blackouts_close_each_day(self, client, host, guest, make_venue):
        v = make_venue(host, hours={d: ("09:00", "17:00") for d in range(7)})
        r = client.post(
            f"/api/venues/{v.id}/blackouts/bulk",
            json={"date_from": "2024-06-01", "date_to": "2024-06-03", "start_time": "12:00", "end_time": "13:00"},
            headers=auth_headers(host),
        )
        assert r.json() == {"ok": True, "created": 3}

        r = client.post("/api/bookings", json=booking_payload(v, "12:30", "13:30"), headers=auth_headers(guest))
        assert r.status_code == 400

    def test_calendar(self, client, venue):
        r = client.get(f"/api/venues/{venue.id}/calendar", params={"from_date": "2024-06-02", "to_date": "2024-06-04"})
        assert r.status_code == 200
        assert [len(day["windows"]) for day in r.json()] == [0, 1, 0]

    def test_calendar_range_limit(self, client, venue):
        r = client.get(f"/api/venues/{venue.id}/calendar", params={"from_date": "2024-01-01", "to_date": "2024-06-01"})
        assert r.status_code == 400
