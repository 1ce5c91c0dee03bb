"""
PURPOSE: Initial migration - jurisdictions, projects, RAID registers, schedules and notifications
SRP and DRY check: Pass - Single responsibility of database schema creation
"""

"""Initial civic PM tables

Revision ID: 001
Revises:
Create Date: 2025-10-20 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Create initial schema"""

    op.create_table('jurisdictions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('identifier', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('identifier')
    )

    op.create_table('projects',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True),
        sa.Column('jurisdiction_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('scope', sa.String(length=20), nullable=False),
        sa.Column('funding_source', sa.String(length=20), nullable=False),
        sa.Column('budget_allocated', sa.Float(), nullable=False),
        sa.Column('budget_spent', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('planned_start_date', sa.Date(), nullable=True),
        sa.Column('planned_end_date', sa.Date(), nullable=True),
        sa.Column('actual_start_date', sa.Date(), nullable=True),
        sa.Column('actual_end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False),
        sa.Column('project_manager_id', sa.String(length=64), nullable=True),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('assigned_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('public_description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['jurisdiction_id'], ['jurisdictions.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_projects_code'), 'projects', ['code'], unique=True)
    op.create_index(op.f('ix_projects_jurisdiction_id'), 'projects', ['jurisdiction_id'], unique=False)
    op.create_index(op.f('ix_projects_project_manager_id'), 'projects', ['project_manager_id'], unique=False)
    op.create_index(op.f('ix_projects_assigned_to'), 'projects', ['assigned_to'], unique=False)

    op.create_table('project_risks',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('probability', sa.String(length=20), nullable=False),
        sa.Column('impact', sa.String(length=20), nullable=False),
        sa.Column('risk_score', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('mitigation_strategy', sa.Text(), nullable=True),
        sa.Column('contingency_plan', sa.Text(), nullable=True),
        sa.Column('owner_id', sa.String(length=64), nullable=True),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('escalated_to_issue_id', sa.String(length=64), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_project_risks_project_status', 'project_risks', ['project_id', 'status'], unique=False)

    op.create_table('project_issues',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('risk_id', sa.String(length=64), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('severity', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('impact_description', sa.Text(), nullable=True),
        sa.Column('root_cause', sa.Text(), nullable=True),
        sa.Column('resolution_plan', sa.Text(), nullable=True),
        sa.Column('actual_resolution', sa.Text(), nullable=True),
        sa.Column('owner_id', sa.String(length=64), nullable=True),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('reported_by', sa.String(length=64), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('resolved_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_project_issues_project_status', 'project_issues', ['project_id', 'status'], unique=False)
    op.create_index(op.f('ix_project_issues_risk_id'), 'project_issues', ['risk_id'], unique=False)

    op.create_table('project_decisions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('issue_id', sa.String(length=64), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('decision_type', sa.String(length=20), nullable=False),
        sa.Column('decision_status', sa.String(length=20), nullable=False),
        sa.Column('decision_criteria', sa.Text(), nullable=True),
        sa.Column('options_considered', sa.Text(), nullable=True),
        sa.Column('chosen_option', sa.Text(), nullable=True),
        sa.Column('rationale', sa.Text(), nullable=True),
        sa.Column('decision_maker', sa.String(length=64), nullable=True),
        sa.Column('stakeholders', sa.JSON(), nullable=True),
        sa.Column('approval_required', sa.Boolean(), nullable=False),
        sa.Column('approved_by', sa.String(length=64), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('implementation_deadline', sa.Date(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_decisions_project_id'), 'project_decisions', ['project_id'], unique=False)

    op.create_table('project_actions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('decision_id', sa.String(length=64), nullable=True),
        sa.Column('issue_id', sa.String(length=64), nullable=True),
        sa.Column('risk_id', sa.String(length=64), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('action_type', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('completion_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_project_actions_project_status', 'project_actions', ['project_id', 'status'], unique=False)

    op.create_table('project_schedules',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('template_id', sa.String(length=100), nullable=True),
        sa.Column('template_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('total_duration_days', sa.Integer(), nullable=False),
        sa.Column('total_tasks', sa.Integer(), nullable=False),
        sa.Column('completed_tasks', sa.Integer(), nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False),
        sa.Column('required_documents', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_schedules_project_id'), 'project_schedules', ['project_id'], unique=False)

    op.create_table('schedule_phases',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('schedule_id', sa.String(length=64), nullable=False),
        sa.Column('phase_order', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('estimated_days', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['schedule_id'], ['project_schedules.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_schedule_phases_schedule_id'), 'schedule_phases', ['schedule_id'], unique=False)

    op.create_table('schedule_tasks',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('schedule_id', sa.String(length=64), nullable=False),
        sa.Column('phase_id', sa.String(length=64), nullable=False),
        sa.Column('parent_task_id', sa.String(length=64), nullable=True),
        sa.Column('task_order', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('is_subtask', sa.Boolean(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('estimated_hours', sa.Float(), nullable=False),
        sa.Column('actual_hours', sa.Float(), nullable=True),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['schedule_id'], ['project_schedules.id']),
        sa.ForeignKeyConstraint(['phase_id'], ['schedule_phases.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_schedule_tasks_schedule_id'), 'schedule_tasks', ['schedule_id'], unique=False)
    op.create_index(op.f('ix_schedule_tasks_phase_id'), 'schedule_tasks', ['phase_id'], unique=False)

    op.create_table('notifications',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=True),
        sa.Column('project_name', sa.String(length=255), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_notifications_user_read', 'notifications', ['user_id', 'read'], unique=False)


def downgrade() -> None:
    """Drop all tables"""
    op.drop_index('idx_notifications_user_read', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index(op.f('ix_schedule_tasks_phase_id'), table_name='schedule_tasks')
    op.drop_index(op.f('ix_schedule_tasks_schedule_id'), table_name='schedule_tasks')
    op.drop_table('schedule_tasks')
    op.drop_index(op.f('ix_schedule_phases_schedule_id'), table_name='schedule_phases')
    op.drop_table('schedule_phases')
    op.drop_index(op.f('ix_project_schedules_project_id'), table_name='project_schedules')
    op.drop_table('project_schedules')
    op.drop_index('idx_project_actions_project_status', table_name='project_actions')
    op.drop_table('project_actions')
    op.drop_index(op.f('ix_project_decisions_project_id'), table_name='project_decisions')
    op.drop_table('project_decisions')
    op.drop_index(op.f('ix_project_issues_risk_id'), table_name='project_issues')
    op.drop_index('idx_project_issues_project_status', table_name='project_issues')
    op.drop_table('project_issues')
    op.drop_index('idx_project_risks_project_status', table_name='project_risks')
    op.drop_table('project_risks')
    op.drop_index(op.f('ix_projects_assigned_to'), table_name='projects')
    op.drop_index(op.f('ix_projects_project_manager_id'), table_name='projects')
    op.drop_index(op.f('ix_projects_jurisdiction_id'), table_name='projects')
    op.drop_index(op.f('ix_projects_code'), table_name='projects')
    op.drop_table('projects')
    op.drop_table('jurisdictions')
