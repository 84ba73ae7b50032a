from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SubscriptionOut(BaseModel):
    id: str
    member_id: str
    membership_plan_id: str
    status: str
    paused_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
