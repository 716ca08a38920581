"""create applications table

Revision ID: 3f1a9c2d7e10
Revises:
Create Date: 2026-09-28 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('applications',
        sa.Column('id', sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column('discord_id', sa.Text(), nullable=False),
        sa.Column('discord_username', sa.Text(), nullable=False),
        sa.Column('answers', sa.Text(), nullable=True),
        sa.Column('conversation_log', sa.Text(), nullable=True),
        sa.Column('questions_with_answers', sa.Text(), nullable=True),
        sa.Column('test_results', sa.Text(), nullable=True),
        sa.Column('score', sa.Text(), nullable=True),
        sa.Column('total_questions', sa.Integer(), nullable=True),
        sa.Column('correct_answers', sa.Integer(), nullable=True),
        sa.Column('wrong_answers', sa.Integer(), nullable=True),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('reviewed_by', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name='ck_applications_status'),
        sa.CheckConstraint("discord_id <> ''", name='ck_applications_discord_id'),
        sa.CheckConstraint("discord_username <> ''", name='ck_applications_discord_username'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_applications_discord_id'), 'applications', ['discord_id'], unique=False)
    op.create_index(op.f('ix_applications_status'), 'applications', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_applications_status'), table_name='applications')
    op.drop_index(op.f('ix_applications_discord_id'), table_name='applications')
    op.drop_table('applications')
