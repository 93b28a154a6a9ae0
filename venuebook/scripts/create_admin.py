from __future__ import annotations

import argparse
import logging

from sqlalchemy import select

from venuebook.core.config import get_settings
from venuebook.core.logging_config import configure_logging
from venuebook.core.security import hash_password
from venuebook.db.session import SessionLocal
from venuebook.models.user import ROLE_ADMIN, User
from venuebook.services.auth_service import normalize_email

logger = logging.getLogger("venuebook.scripts.create_admin")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or reset a marketplace admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--password", required=True)

    args = parser.parse_args()
    configure_logging(get_settings().log_level)

    email = normalize_email(args.email)

    db = SessionLocal()
    try:
        u = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if u is None:
            u = User(email=email, name=args.name, hashed_password=hash_password(args.password), role=ROLE_ADMIN, is_active=True)
            db.add(u)
            db.commit()
            logger.info("Created admin: %s", u.email)
            return 0

        u.name = args.name
        u.hashed_password = hash_password(args.password)
        u.is_active = True
        u.role = ROLE_ADMIN
        db.commit()
        logger.info("Updated admin: %s", u.email)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
