from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from venuebook.core.config import get_settings
from venuebook.core.logging_config import configure_logging
from venuebook.db.base import Base
from venuebook.db.session import engine
from venuebook.models.booking import BOOKING_OVERLAP_CONSTRAINT

# Import models to register with SQLAlchemy
import venuebook.models  # noqa: F401

logger = logging.getLogger("venuebook.scripts.init_db")

# Second line of defense behind the per-venue row lock taken when booking:
# confirmed bookings of one venue can never overlap, even without buffers.
BOOKING_EXCLUSION_SQL = f"""
ALTER TABLE bookings
ADD CONSTRAINT {BOOKING_OVERLAP_CONSTRAINT}
EXCLUDE USING gist (
    venue_id WITH =,
    tstzrange(start_at, end_at, '[)') WITH &&
)
WHERE (status = 'confirmed');
"""


def main() -> int:
    configure_logging(get_settings().log_level)
    is_postgres = engine.dialect.name == "postgresql"

    if is_postgres:
        # Extension needed for the exclusion constraint
        with engine.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))

    Base.metadata.create_all(bind=engine)

    if is_postgres:
        try:
            with engine.begin() as conn:
                conn.execute(text(BOOKING_EXCLUSION_SQL))
        except ProgrammingError:
            logger.info("%s constraint already exists", BOOKING_OVERLAP_CONSTRAINT)

    logger.info("DB initialized (%s)", engine.dialect.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
