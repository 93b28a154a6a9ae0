from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from venuebook.core.config import get_settings

_pwd_context: CryptContext | None = None


def _context() -> CryptContext:
    global _pwd_context
    if _pwd_context is None:
        settings = get_settings()
        _pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)
    return _pwd_context


def hash_password(password: str) -> str:
    return _context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return _context().verify(plain_password, hashed_password)


def create_access_token(
    subject: str,
    extra_claims: Optional[Dict[str, Any]] = None,
    *,
    now: datetime | None = None,
) -> str:
    """Create a JWT access token.

    subject: the user id. Role is carried in extra_claims so clients can
    render without a round trip, but the server always reloads the user.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.access_token_exp_minutes)

    payload: Dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, *, verify_exp: bool = True) -> Dict[str, Any]:
    settings = get_settings()
    return jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
        options={"verify_exp": verify_exp},
    )
