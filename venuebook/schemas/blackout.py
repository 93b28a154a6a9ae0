from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from venuebook.schemas.common import UtcDatetime


class BlackoutCreate(BaseModel):
    start_at: UtcDatetime
    end_at: UtcDatetime
    reason: str = Field(default="", max_length=255)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self


class BlackoutOut(BaseModel):
    id: str
    venue_id: str
    start_at: UtcDatetime
    end_at: UtcDatetime
    reason: str

    class Config:
        from_attributes = True
