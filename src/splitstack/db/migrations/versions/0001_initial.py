"""initial schema

Revision ID: 0001
Revises: 
Create Date: 2025-06-21 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "stacks",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("stack_date", sa.Date(), nullable=False),
        sa.Column("document", postgresql.JSONB(), nullable=False),
        sa.Column("share_id", sa.String(length=6)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "shared_stacks",
        sa.Column("share_id", sa.String(length=6), primary_key=True),
        sa.Column("snapshot", postgresql.JSONB(), nullable=False),
        sa.Column("shared_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("share_id ~ '^[A-Z0-9]{6}$'", name="shared_stacks_share_id_check"),
    )

    op.create_index("idx_stacks_owner", "stacks", ["owner_id"])
    op.create_index("idx_stacks_share_id", "stacks", ["share_id"])


def downgrade() -> None:
    op.drop_index("idx_stacks_share_id", table_name="stacks")
    op.drop_index("idx_stacks_owner", table_name="stacks")

    op.drop_table("shared_stacks")
    op.drop_table("stacks")
