"""create center settings

Revision ID: 20260301_0002
Revises: 20260301_0001
Create Date: 2026-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20260301_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "center_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("week_range_text", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("external_desc", sa.Text(), nullable=False, server_default=""),
        sa.Column("external_example", sa.Text(), nullable=False, server_default=""),
        sa.Column("center_desc", sa.Text(), nullable=False, server_default=""),
        sa.Column("center_example", sa.Text(), nullable=False, server_default=""),
        sa.Column("notification_footer", sa.Text(), nullable=False, server_default=""),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("center_settings")
