# wineclub/models/price.py

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from wineclub.db.base import Base


class Price(Base):
    """
    A billable price point of a plan. Owned by a business through its plan.
    """

    __tablename__ = "prices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    membership_plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("membership_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # minor units (cents)
    unit_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    # WEEK | MONTH | YEAR
    interval: Mapped[str] = mapped_column(String(10), nullable=False, default="MONTH")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
