# src/roadwatch/models/account.py
"""SQLAlchemy model for user accounts and their token balances."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roadwatch.db.session import Base
from roadwatch.db.time import utcnow


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid.uuid4())


class Account(Base):
    """A user's profile, admin flag and token balance.

    The balance is only changed by the token economy engine; profile edits
    never touch ``tokens`` or ``is_admin``.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("tokens >= 0", name="ck_accounts_tokens_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
