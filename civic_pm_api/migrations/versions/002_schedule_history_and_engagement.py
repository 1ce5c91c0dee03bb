"""
PURPOSE: Project code counter, schedule change history, public project updates and citizen feedback
SRP and DRY check: Pass - Single responsibility of database schema changes
"""

"""Schedule history and citizen engagement tables

Revision ID: 002
Revises: 001
Create Date: 2025-11-03 10:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add code counter, phase template reference and the history and engagement tables"""

    op.add_column('jurisdictions',
        sa.Column('last_project_sequence', sa.Integer(), nullable=False, server_default='0')
    )
    op.add_column('schedule_phases',
        sa.Column('template_phase_id', sa.String(length=100), nullable=True)
    )

    op.create_table('schedule_history',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('schedule_id', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('entity_type', sa.String(length=20), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('change_summary', sa.Text(), nullable=False),
        sa.Column('changed_by', sa.String(length=64), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['schedule_id'], ['project_schedules.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_schedule_history_schedule_id'), 'schedule_history', ['schedule_id'], unique=False)

    op.create_table('project_updates',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('update_type', sa.String(length=20), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_updates_project_id'), 'project_updates', ['project_id'], unique=False)

    op.create_table('project_feedback',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('citizen_id', sa.String(length=64), nullable=True),
        sa.Column('feedback_type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('response', sa.Text(), nullable=True),
        sa.Column('responded_by', sa.String(length=64), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_feedback_project_id'), 'project_feedback', ['project_id'], unique=False)


def downgrade() -> None:
    """Drop the history and engagement tables and the added columns"""
    op.drop_index(op.f('ix_project_feedback_project_id'), table_name='project_feedback')
    op.drop_table('project_feedback')
    op.drop_index(op.f('ix_project_updates_project_id'), table_name='project_updates')
    op.drop_table('project_updates')
    op.drop_index(op.f('ix_schedule_history_schedule_id'), table_name='schedule_history')
    op.drop_table('schedule_history')
    op.drop_column('schedule_phases', 'template_phase_id')
    op.drop_column('jurisdictions', 'last_project_sequence')
