from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from jose import JWTError

from venuebook.core.security import decode_access_token

ANONYMOUS = "anonymous"
AUTHENTICATED = "authenticated"
EXPIRED = "expired"


@dataclass(frozen=True)
class AuthSession:
    """Explicit authentication state passed through the application.

    Replaces ambient module-level auth state: each refresh produces a new
    value, the previous one is never mutated.
    """

    status: str = ANONYMOUS
    token: str | None = None
    user_id: str | None = None
    role: str | None = None
    expires_at: datetime | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == AUTHENTICATED

    def has_role(self, *roles: str) -> bool:
        return self.is_authenticated and self.role in roles


def refresh_session(session: AuthSession, token: str | None, now: datetime | None = None) -> AuthSession:
    """Transition `session` for the token currently held by the client.

    - no token: anonymous
    - undecodable token: anonymous
    - token past its expiry: expired (keeps the user id for re-login hints)
    - otherwise: authenticated with the token's subject and role
    """
    now = now or datetime.now(timezone.utc)
    if not token:
        return AuthSession()

    try:
        claims = decode_access_token(token, verify_exp=False)
    except JWTError:
        return AuthSession()

    user_id = claims.get("sub")
    if not user_id:
        return AuthSession()

    exp = claims.get("exp")
    expires_at = datetime.fromtimestamp(int(exp), tz=timezone.utc) if exp is not None else None
    if expires_at is not None and now >= expires_at:
        return AuthSession(status=EXPIRED, user_id=user_id, role=claims.get("role"), expires_at=expires_at)

    if session.token == token and session.is_authenticated:
        return session

    return replace(
        session,
        status=AUTHENTICATED,
        token=token,
        user_id=user_id,
        role=claims.get("role"),
        expires_at=expires_at,
    )
