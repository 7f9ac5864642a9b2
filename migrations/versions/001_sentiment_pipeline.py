"""Create event, review, sentiment_job and sentiment_result tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'event',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('organizer_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_event_id', 'event', ['id'])
    op.create_index('ix_event_organizer_id', 'event', ['organizer_id'])

    op.create_table(
        'review',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('event_id', sa.String(), sa.ForeignKey('event.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('sentiment_label', sa.String(), nullable=True),
        sa.Column('sentiment_score', sa.Float(), nullable=True),
        sa.Column('sentiment_status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_review_id', 'review', ['id'])
    op.create_index('ix_review_user_id', 'review', ['user_id'])
    op.create_index('ix_review_event_id', 'review', ['event_id'])

    op.create_table(
        'sentiment_job',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('review_id', sa.String(), sa.ForeignKey('review.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_sentiment_job_id', 'sentiment_job', ['id'])
    op.create_index('ix_sentiment_job_status', 'sentiment_job', ['status'])

    op.create_table(
        'sentiment_result',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('review_id', sa.String(), sa.ForeignKey('review.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('sentiment_class', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('negative_summary', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_sentiment_result_id', 'sentiment_result', ['id'])


def downgrade() -> None:
    op.drop_table('sentiment_result')
    op.drop_table('sentiment_job')
    op.drop_table('review')
    op.drop_table('event')
