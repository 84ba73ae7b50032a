from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel


class BusinessOut(BaseModel):
    id: str
    name: str
    slug: str
    is_active: bool
    created_at: datetime


class BusinessContextOut(BaseModel):
    """
    What the dashboard needs to gate its UI for the signed-in team member.
    """

    business: BusinessOut
    role: str
    role_label: str
    permissions: List[str] = []
