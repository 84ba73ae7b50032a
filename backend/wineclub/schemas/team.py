from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class TeamMemberOut(BaseModel):
    id: str
    user_id: str
    email: str
    name: Optional[str] = None
    role: str
    role_label: str
    created_at: datetime


class TeamInviteCreate(BaseModel):
    email: EmailStr
    role: str = Field(default="STAFF", description="ADMIN or STAFF (Employee).")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class TeamRoleUpdate(BaseModel):
    role: str
