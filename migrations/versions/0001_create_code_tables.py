"""create codes, history, batches and stats tables

Revision ID: 0001
Revises:
Create Date: 2026-02-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "codes",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("code", sa.String(length=128), nullable=False),
        sa.Column("speed", sa.String(length=20), nullable=False),
        sa.Column("batch", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="unused"),
        sa.Column("added_on", sa.TIMESTAMP(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.Column("used_on", sa.TIMESTAMP(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_codes_speed_status", "codes", ["speed", "status"], unique=False)

    op.create_table(
        "history",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("code", sa.String(length=128), nullable=False),
        sa.Column("speed", sa.String(length=20), nullable=False),
        sa.Column("batch", sa.String(length=200), nullable=False),
        sa.Column("used_on", sa.TIMESTAMP(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "batches",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("batch_name", sa.String(length=200), nullable=False),
        sa.Column("speed", sa.String(length=20), nullable=False),
        sa.Column("total_codes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("uploaded_on", sa.TIMESTAMP(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "stats",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("total_codes_uploaded", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("codes_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("yes_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("no_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("batches_uploaded", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_updated", sa.TIMESTAMP(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("stats")
    op.drop_table("batches")
    op.drop_table("history")
    op.drop_index("ix_codes_speed_status", table_name="codes")
    op.drop_table("codes")
