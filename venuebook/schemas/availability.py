from __future__ import annotations

from datetime import date, time

from pydantic import BaseModel, Field, model_validator

from venuebook.schemas.common import UtcDatetime


class AvailabilityRuleCreate(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    open_time: time
    close_time: time

    @model_validator(mode="after")
    def _check_order(self):
        # Overnight hours are not supported
        if self.close_time <= self.open_time:
            raise ValueError("close_time must be after open_time")
        return self


class AvailabilityRuleOut(BaseModel):
    id: str
    venue_id: str
    day_of_week: int
    open_time: time
    close_time: time

    class Config:
        from_attributes = True


class AvailabilityCheckResponse(BaseModel):
    available: bool
    reason: str | None = None


class OpenWindow(BaseModel):
    start_at: UtcDatetime
    end_at: UtcDatetime


class OpenWindowsResponse(BaseModel):
    venue_id: str
    date: date
    windows: list[OpenWindow]
