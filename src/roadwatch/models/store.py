# src/roadwatch/models/store.py
"""Models for the rewards catalog and redemption requests."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from roadwatch.db.session import Base
from roadwatch.db.time import utcnow
from roadwatch.models.account import new_id


class RedemptionStatus(str, enum.Enum):
    """Redemption lifecycle; fulfilled and cancelled are terminal."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class StoreItem(Base):
    """A reward that can be bought with tokens."""

    __tablename__ = "store_items"
    __table_args__ = (
        CheckConstraint("token_cost > 0", name="ck_store_items_token_cost_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    token_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Redemption(Base):
    """A user's request to exchange tokens for a store item.

    The cost is debited when the row is created; ``token_cost`` keeps the
    price that was actually paid even if the item is repriced later.
    """

    __tablename__ = "user_rewards"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'fulfilled', 'cancelled')",
            name="ck_user_rewards_status",
        ),
        Index("ix_user_rewards_user_id", "user_id"),
        Index("ix_user_rewards_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("store_items.id"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RedemptionStatus.PENDING.value
    )
    token_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    fulfilled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
