"""add review notes to applications

Revision ID: 8b4e0d6f2a31
Revises: 3f1a9c2d7e10
Create Date: 2026-10-06 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "8b4e0d6f2a31"
down_revision: Union[str, None] = "3f1a9c2d7e10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "applications",
        sa.Column("review_notes", sa.Text(), nullable=True),
    )
    op.create_index(
        "ix_applications_created_at",
        "applications",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("ix_applications_created_at", table_name="applications")
    op.drop_column("applications", "review_notes")
