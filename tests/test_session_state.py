from datetime import datetime, timedelta, timezone

from venuebook.core.security import create_access_token
from venuebook.core.session_state import (
    ANONYMOUS,
    AUTHENTICATED,
    EXPIRED,
    AuthSession,
    refresh_session,
)

NOW = datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc)


def _token(role="guest", issued=NOW):
    return create_access_token("user-1", {"role": role}, now=issued)


def test_no_token_is_anonymous():
    session = refresh_session(AuthSession(), None, now=NOW)
    assert session.status == ANONYMOUS
    assert not session.is_authenticated


def test_valid_token_authenticates():
    token = _token("host")
    session = refresh_session(AuthSession(), token, now=NOW)
    assert session.status == AUTHENTICATED
    assert session.user_id == "user-1"
    assert session.role == "host"
    assert session.has_role("host", "admin")
    assert not session.has_role("admin")


def test_same_token_returns_same_session():
    token = _token()
    first = refresh_session(AuthSession(), token, now=NOW)
    second = refresh_session(first, token, now=NOW + timedelta(minutes=1))
    assert second is first


def test_previous_session_is_not_mutated():
    first = refresh_session(AuthSession(), _token("guest"), now=NOW)
    second = refresh_session(first, _token("host"), now=NOW)
    assert first.role == "guest"
    assert second.role == "host"


def test_expired_token():
    token = _token()
    session = refresh_session(AuthSession(), token, now=NOW + timedelta(days=2))
    assert session.status == EXPIRED
    assert session.user_id == "user-1"
    assert not session.is_authenticated


def test_garbage_token_is_anonymous():
    assert refresh_session(AuthSession(), "not-a-jwt", now=NOW).status == ANONYMOUS
