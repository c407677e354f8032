"""add week, save time and sequence to schedule records

Revision ID: 20260315_0003
Revises: 20260301_0002
Create Date: 2026-03-15 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20260315_0003"
down_revision = "20260301_0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("schedule_records", sa.Column("week_start", sa.Date(), nullable=True))
    op.add_column("schedule_records", sa.Column("saved_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column("schedule_records", sa.Column("sequence", sa.Integer(), nullable=True))
    op.create_index(
        "ix_schedule_records_student_week",
        "schedule_records",
        ["student_id", "week_start"],
    )


def downgrade() -> None:
    op.drop_index("ix_schedule_records_student_week", table_name="schedule_records")
    op.drop_column("schedule_records", "sequence")
    op.drop_column("schedule_records", "saved_at")
    op.drop_column("schedule_records", "week_start")
