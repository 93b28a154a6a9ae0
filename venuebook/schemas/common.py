from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from venuebook.services.intervals import ensure_utc

# Naive inputs are read as UTC; everything leaves the API as aware UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
