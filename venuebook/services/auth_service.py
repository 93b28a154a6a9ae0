from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from venuebook.core.security import hash_password, verify_password
from venuebook.models.user import ROLE_GUEST, ROLE_HOST, User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(db: Session, *, email: str, name: str, password: str, role: str = ROLE_GUEST) -> User:
    email_norm = normalize_email(email)
    existing = db.execute(select(User).where(User.email == email_norm)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=409, detail="Email already exists")

    user = User(email=email_norm, name=name, hashed_password=hash_password(password), role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s as %s", user.id, role)
    return user


def authenticate_user(db: Session, *, email: str, password: str) -> User:
    email_norm = normalize_email(email)
    user = db.execute(select(User).where(User.email == email_norm)).scalar_one_or_none()

    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        logger.info("Failed login for %s", email_norm)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return user


def upgrade_to_host(db: Session, *, user: User) -> User:
    # Admins keep their role; hosts are a no-op
    if user.role == ROLE_GUEST:
        user.role = ROLE_HOST
        db.commit()
        db.refresh(user)
    return user
