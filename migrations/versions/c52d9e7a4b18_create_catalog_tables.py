"""create test_questions, quiz_questions and mod_roles

Revision ID: c52d9e7a4b18
Revises: 8b4e0d6f2a31
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "c52d9e7a4b18"
down_revision: Union[str, None] = "8b4e0d6f2a31"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "test_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_message", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("avatar_color", sa.Text(), nullable=True),
        sa.Column("keywords", sa.JSON(), nullable=True),
        sa.Column("required_matches", sa.Integer(), server_default="2", nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
    )
    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("question_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("optimal_response", sa.Text(), nullable=True),
        sa.Column("key_elements", sa.JSON(), nullable=True),
        sa.Column("avoid", sa.JSON(), nullable=True),
    )
    op.create_index("ix_quiz_questions_question_number", "quiz_questions", ["question_number"])
    op.create_table(
        "mod_roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("role_id", sa.Text(), nullable=False),
        sa.Column("role_name", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("mod_roles")
    op.drop_index("ix_quiz_questions_question_number", table_name="quiz_questions")
    op.drop_table("quiz_questions")
    op.drop_table("test_questions")
