# src/roadwatch/models/hazard.py
"""Models for hazard reports and the vote/comment ledgers derived from them."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from roadwatch.db.session import Base
from roadwatch.db.time import utcnow
from roadwatch.models.account import new_id

DEFAULT_TOKEN_REWARD = 10


class HazardType(str, enum.Enum):
    """Kinds of hazard a report can describe."""

    POTHOLE = "pothole"
    WATERLOGGING = "waterlogging"
    OTHER = "other"


class HazardStatus(str, enum.Enum):
    """Lifecycle of a report. Only moves forward."""

    ACTIVE = "active"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"


class HazardReport(Base):
    """A geolocated hazard submitted by a user.

    ``votes`` and ``comments`` are denormalized counters kept equal to the row
    counts of :class:`HazardVote` and :class:`HazardComment` by the counter
    helpers; nothing else writes them.
    """

    __tablename__ = "hazard_reports"
    __table_args__ = (
        CheckConstraint(
            "type IN ('pothole', 'waterlogging', 'other')",
            name="ck_hazard_reports_type",
        ),
        CheckConstraint(
            "status IN ('active', 'investigating', 'resolved')",
            name="ck_hazard_reports_status",
        ),
        CheckConstraint("votes >= 0", name="ck_hazard_reports_votes"),
        CheckConstraint("comments >= 0", name="ck_hazard_reports_comments"),
        CheckConstraint("token_reward >= 0", name="ck_hazard_reports_token_reward"),
        Index("ix_hazard_reports_reported_by", "reported_by"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=HazardType.OTHER.value)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    reported_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=HazardStatus.ACTIVE.value
    )
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Fixed at creation; credited to the reporter exactly once.
    token_reward: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_TOKEN_REWARD
    )
    reward_credited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Client-supplied idempotency key so a retried submission is not credited twice.
    submission_key: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class HazardVote(Base):
    """One user's vote on one report."""

    __tablename__ = "hazard_votes"
    __table_args__ = (
        # A user may hold at most one vote per report.
        UniqueConstraint("hazard_id", "user_id", name="uq_hazard_votes_hazard_user"),
        Index("ix_hazard_votes_hazard_id", "hazard_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hazard_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hazard_reports.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class HazardComment(Base):
    """Free-text comment attached to a report."""

    __tablename__ = "hazard_comments"
    __table_args__ = (Index("ix_hazard_comments_hazard_id", "hazard_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hazard_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hazard_reports.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
