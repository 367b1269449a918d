"""Complaints and complaint message threads.

Revision ID: 0001_complaints
Revises:
Create Date: 2026-10-19

Creates:
- complaints (one row per student ID)
- complaint_messages (append-only thread per complaint)
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_complaints'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'complaints',
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('department', sa.String(120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='open'),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_text_by', sa.String(32), nullable=False, server_default='student'),
        sa.PrimaryKeyConstraint('student_id'),
        sa.CheckConstraint(
            "status IN ('open', 'in-progress', 'resolved', 'closed')",
            name='ck_complaints_status',
        ),
        sa.CheckConstraint(
            "last_text_by IN ('student', 'admin')",
            name='ck_complaints_last_text_by',
        ),
    )
    op.create_index('idx_complaints_status', 'complaints', ['status'])
    op.create_index('idx_complaints_last_updated', 'complaints', ['last_updated_at'])

    op.create_table(
        'complaint_messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('sent_by', sa.String(32), nullable=False),
        sa.Column('is_admin', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['complaints.student_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "sent_by IN ('student', 'admin')",
            name='ck_complaint_messages_sent_by',
        ),
    )
    op.create_index(
        'idx_complaint_messages_thread',
        'complaint_messages',
        ['student_id', 'timestamp', 'id'],
    )


def downgrade() -> None:
    op.drop_index('idx_complaint_messages_thread', table_name='complaint_messages')
    op.drop_table('complaint_messages')
    op.drop_index('idx_complaints_last_updated', table_name='complaints')
    op.drop_index('idx_complaints_status', table_name='complaints')
    op.drop_table('complaints')
