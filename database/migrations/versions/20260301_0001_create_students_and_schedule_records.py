"""create students and schedule records

Revision ID: 20260301_0001
Revises: None
Create Date: 2026-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


schedule_kind_enum = sa.Enum("center", "external", "absent", name="schedule_kind")


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("grade", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("student_phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("parent_phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_students_name", "students", ["name"])

    op.create_table(
        "schedule_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("day", sa.String(length=3), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("kind", schedule_kind_enum, nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
    )
    op.create_index("ix_schedule_records_student_id", "schedule_records", ["student_id"])


def downgrade() -> None:
    op.drop_index("ix_schedule_records_student_id", table_name="schedule_records")
    op.drop_table("schedule_records")
    op.drop_index("ix_students_name", table_name="students")
    op.drop_table("students")
    schedule_kind_enum.drop(op.get_bind(), checkfirst=True)
