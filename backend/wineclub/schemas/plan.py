from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class PlanOut(BaseModel):
    id: str
    business_id: str
    name: str
    description: Optional[str] = None
    status: str
    max_subscribers: Optional[int] = None
    subscriber_count: int = 0
    created_at: datetime


class PlanUpdate(BaseModel):
    # send only the fields to change
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[Literal["ACTIVE", "DRAFT", "ARCHIVED"]] = None
    max_subscribers: Optional[int] = Field(default=None, gt=0)

    @field_validator("name", "status", mode="before")
    @classmethod
    def reject_null(cls, v):
        # name/status columns are NOT NULL; omit the field to leave it unchanged
        if v is None:
            raise ValueError("may be omitted but not null")
        return v
