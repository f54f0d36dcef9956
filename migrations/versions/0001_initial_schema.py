"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, hazard ledgers and the rewards store."""
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("tokens >= 0", name="ck_accounts_tokens_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "hazard_reports",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("reported_by", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("token_reward", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("reward_credited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("submission_key", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "type IN ('pothole', 'waterlogging', 'other')", name="ck_hazard_reports_type"
        ),
        sa.CheckConstraint(
            "status IN ('active', 'investigating', 'resolved')",
            name="ck_hazard_reports_status",
        ),
        sa.CheckConstraint("votes >= 0", name="ck_hazard_reports_votes"),
        sa.CheckConstraint("comments >= 0", name="ck_hazard_reports_comments"),
        sa.CheckConstraint("token_reward >= 0", name="ck_hazard_reports_token_reward"),
        sa.ForeignKeyConstraint(["reported_by"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("submission_key"),
    )
    op.create_index("ix_hazard_reports_reported_by", "hazard_reports", ["reported_by"])

    op.create_table(
        "hazard_votes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("hazard_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["hazard_id"], ["hazard_reports.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("hazard_id", "user_id", name="uq_hazard_votes_hazard_user"),
    )
    op.create_index("ix_hazard_votes_hazard_id", "hazard_votes", ["hazard_id"])

    op.create_table(
        "hazard_comments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("hazard_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["hazard_id"], ["hazard_reports.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_hazard_comments_hazard_id", "hazard_comments", ["hazard_id"])

    op.create_table(
        "store_items",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("token_cost", sa.Integer(), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("token_cost > 0", name="ck_store_items_token_cost_positive"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_rewards",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("token_cost", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fulfilled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'fulfilled', 'cancelled')", name="ck_user_rewards_status"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_id"], ["store_items.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_rewards_user_id", "user_rewards", ["user_id"])
    op.create_index("ix_user_rewards_status", "user_rewards", ["status"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_user_rewards_status", table_name="user_rewards")
    op.drop_index("ix_user_rewards_user_id", table_name="user_rewards")
    op.drop_table("user_rewards")
    op.drop_table("store_items")
    op.drop_index("ix_hazard_comments_hazard_id", table_name="hazard_comments")
    op.drop_table("hazard_comments")
    op.drop_index("ix_hazard_votes_hazard_id", table_name="hazard_votes")
    op.drop_table("hazard_votes")
    op.drop_index("ix_hazard_reports_reported_by", table_name="hazard_reports")
    op.drop_table("hazard_reports")
    op.drop_table("accounts")
