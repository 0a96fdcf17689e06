"""Initial schema: day schedules, seen week submissions, store markers, operation logs.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "day_schedules",
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("display_date", sa.String(5), nullable=False),
        sa.Column("day_name", sa.String(32), nullable=False),
        sa.Column("week_id", sa.String(64), nullable=False),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sessions", sa.JSON(), nullable=False),
        sa.Column("stored_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("date"),
    )
    op.create_index("ix_day_schedules_week_id", "day_schedules", ["week_id"], unique=False)

    op.create_table(
        "week_submissions",
        sa.Column("week_id", sa.String(64), nullable=False),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("day_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("week_id"),
    )

    op.create_table(
        "store_markers",
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("value", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "operation_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("log_date", sa.Date(), nullable=False),
        sa.Column("run_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("succeeded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("skipped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_operation_logs_log_date", "operation_logs", ["log_date"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_operation_logs_log_date", table_name="operation_logs")
    op.drop_table("operation_logs")
    op.drop_table("store_markers")
    op.drop_table("week_submissions")
    op.drop_index("ix_day_schedules_week_id", table_name="day_schedules")
    op.drop_table("day_schedules")
