"""
Pydantic schemas for GST period locks
Project: GST Ledger
"""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PeriodLockCreate(BaseModel):
    """File a GST return for [period_start, period_end]."""

    period_start: date = Field(..., serialization_alias="periodStart")
    period_end: date = Field(..., serialization_alias="periodEnd")
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self) -> "PeriodLockCreate":
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PeriodLockRead(BaseModel):
    id: uuid.UUID
    period_start: date = Field(..., alias="periodStart")
    period_end: date = Field(..., alias="periodEnd")
    filed_at: datetime = Field(..., alias="filedAt")
    filed_by: uuid.UUID = Field(..., alias="filedBy")
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class DateLockStatus(BaseModel):
    day: date
    is_locked: bool = Field(..., alias="isLocked")

    model_config = ConfigDict(populate_by_name=True)
