# wineclub/models/audit_log.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from wineclub.db.base import Base


class AuditLog(Base):
    """
    Immutable record of a sensitive tenant action.

    Rows are inserted only; nothing in the application updates or deletes them.

    NOTE:
      - The Python attribute cannot be named "metadata" because SQLAlchemy Declarative uses it.
      - We map attribute `event_metadata` -> DB column name "metadata".
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_business_created", "business_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    business_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # TEAM_MEMBER_INVITED, TEAM_ROLE_CHANGED, PLAN_UPDATED, ...
    type: Mapped[str] = mapped_column(String(64), nullable=False)

    event_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
