"""create users table

Revision ID: 0001_create_users
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_create_users"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("display_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("handle", sa.String(length=100), nullable=True),
        sa.Column("total_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("game_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_activity_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("daily_reward_last_claimed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pending_guess", sa.Integer(), nullable=True),
        sa.Column("last_interaction", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index(
        "ix_users_leaderboard",
        "users",
        ["total_score", "longest_streak", "current_streak"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_users_leaderboard", table_name="users")
    op.drop_table("users")
