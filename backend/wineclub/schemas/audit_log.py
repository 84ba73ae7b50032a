from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class AuditLogOut(BaseModel):
    id: str
    business_id: str
    actor_user_id: Optional[str] = None
    type: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
