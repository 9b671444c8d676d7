"""initial review tracker schema

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 09:12:41.318204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3f1c9a2b7d40'
down_revision = None
branch_labels = None
depends_on = None


userrole = sa.Enum('ADMIN', 'MANAGER', 'DEVELOPER', name='userrole', create_constraint=True)
sessionstatus = sa.Enum('DRAFT', 'SUBMITTED', 'REVIEWED', 'COMPLETED', name='sessionstatus', create_constraint=True)
questiontype = sa.Enum('RATING_1_5', 'RATING_1_10', 'TEXT', 'YES_NO', name='questiontype', create_constraint=True)
questionscope = sa.Enum('COMPANY', 'TEAM', name='questionscope', create_constraint=True)
questioncategory = sa.Enum(
    'RESEARCH', 'STRATEGY', 'CORE_QUALITIES', 'LEADERSHIP', 'TECHNICAL',
    name='questioncategory', create_constraint=True,
)
participantrole = sa.Enum('DEVELOPER', 'MANAGER', name='participantrole', create_constraint=True)
notetype = sa.Enum('DEVELOPER_NOTES', 'MANAGER_FEEDBACK', name='notetype', create_constraint=True)
actionstatus = sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', name='actionstatus', create_constraint=True)
metricsrunstatus = sa.Enum('PENDING', 'SUCCEEDED', 'FAILED', name='metricsrunstatus', create_constraint=True)
notificationtype = sa.Enum(
    'ONE_ON_ONE_SUBMITTED', 'ONE_ON_ONE_REVIEWED', 'ONE_ON_ONE_COMPLETED', 'ONE_ON_ONE_REMINDER',
    'ACTION_ITEM_ASSIGNED', 'ACTION_ITEM_DUE_SOON', 'ACTION_ITEM_OVERDUE',
    name='notificationtype', create_constraint=True,
)


def upgrade():
    op.create_table('users',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('avatar_url', sa.String(length=1024), nullable=True),
    sa.Column('role', userrole, nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('teams',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(length=128), nullable=False),
    sa.Column('manager_id', sa.String(length=36), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['manager_id'], ['users.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_teams_manager_id'), 'teams', ['manager_id'], unique=False)

    op.create_table('team_memberships',
    sa.Column('user_id', sa.String(length=36), nullable=False),
    sa.Column('team_id', sa.String(length=36), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='RESTRICT'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('user_id', 'team_id'),
    sa.UniqueConstraint('user_id', 'team_id', name='uq_team_memberships_user_team')
    )

    op.create_table('questions',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('question_text', sa.Text(), nullable=False),
    sa.Column('question_type', questiontype, nullable=False),
    sa.Column('scope', questionscope, nullable=False),
    sa.Column('category', questioncategory, nullable=True),
    sa.Column('team_id', sa.String(length=36), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('sort_order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_questions_team_id'), 'questions', ['team_id'], unique=False)

    op.create_table('one_on_ones',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('developer_id', sa.String(length=36), nullable=False),
    sa.Column('manager_id', sa.String(length=36), nullable=False),
    sa.Column('team_id', sa.String(length=36), nullable=True),
    sa.Column('month_year', sa.String(length=7), nullable=False),
    sa.Column('session_number', sa.Integer(), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=True),
    sa.Column('status', sessionstatus, nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('developer_submitted_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('manager_reviewed_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['developer_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['manager_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('developer_id', 'manager_id', 'month_year', 'session_number', name='uq_one_on_ones_pair_month_number')
    )
    op.create_index(op.f('ix_one_on_ones_developer_id'), 'one_on_ones', ['developer_id'], unique=False)
    op.create_index(op.f('ix_one_on_ones_manager_id'), 'one_on_ones', ['manager_id'], unique=False)
    op.create_index(op.f('ix_one_on_ones_team_id'), 'one_on_ones', ['team_id'], unique=False)
    op.create_index(op.f('ix_one_on_ones_month_year'), 'one_on_ones', ['month_year'], unique=False)
    op.create_index(op.f('ix_one_on_ones_status'), 'one_on_ones', ['status'], unique=False)

    op.create_table('answers',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('one_on_one_id', sa.String(length=36), nullable=False),
    sa.Column('question_id', sa.String(length=36), nullable=False),
    sa.Column('answer_type', participantrole, nullable=False),
    sa.Column('rating_value', sa.Integer(), nullable=True),
    sa.Column('text_value', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['one_on_one_id'], ['one_on_ones.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='RESTRICT'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('one_on_one_id', 'question_id', 'answer_type', name='uq_answers_session_question_type')
    )
    op.create_index(op.f('ix_answers_one_on_one_id'), 'answers', ['one_on_one_id'], unique=False)
    op.create_index(op.f('ix_answers_question_id'), 'answers', ['question_id'], unique=False)

    op.create_table('notes',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('one_on_one_id', sa.String(length=36), nullable=False),
    sa.Column('note_type', notetype, nullable=False),
    sa.Column('content', sa.Text(), nullable=False),
    sa.Column('created_by', sa.String(length=36), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
    sa.ForeignKeyConstraint(['one_on_one_id'], ['one_on_ones.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('one_on_one_id', 'note_type', name='uq_notes_session_type')
    )
    op.create_index(op.f('ix_notes_one_on_one_id'), 'notes', ['one_on_one_id'], unique=False)

    op.create_table('action_items',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('one_on_one_id', sa.String(length=36), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('status', actionstatus, nullable=False),
    sa.Column('assigned_to', participantrole, nullable=False),
    sa.Column('due_date', sa.Date(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['one_on_one_id'], ['one_on_ones.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_action_items_one_on_one_id'), 'action_items', ['one_on_one_id'], unique=False)
    op.create_index(op.f('ix_action_items_status'), 'action_items', ['status'], unique=False)
    op.create_index(op.f('ix_action_items_due_date'), 'action_items', ['due_date'], unique=False)

    op.create_table('metrics_snapshots',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('one_on_one_id', sa.String(length=36), nullable=False),
    sa.Column('developer_id', sa.String(length=36), nullable=False),
    sa.Column('team_id', sa.String(length=36), nullable=True),
    sa.Column('month_year', sa.String(length=7), nullable=False),
    sa.Column('average_score', sa.Float(), nullable=True),
    sa.Column('metric_data', sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['developer_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['one_on_one_id'], ['one_on_ones.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('one_on_one_id')
    )
    op.create_index(op.f('ix_metrics_snapshots_developer_id'), 'metrics_snapshots', ['developer_id'], unique=False)
    op.create_index(op.f('ix_metrics_snapshots_team_id'), 'metrics_snapshots', ['team_id'], unique=False)
    op.create_index(op.f('ix_metrics_snapshots_month_year'), 'metrics_snapshots', ['month_year'], unique=False)

    op.create_table('metrics_runs',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('one_on_one_id', sa.String(length=36), nullable=False),
    sa.Column('status', metricsrunstatus, nullable=False),
    sa.Column('attempts', sa.Integer(), nullable=False),
    sa.Column('last_error', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['one_on_one_id'], ['one_on_ones.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_metrics_runs_one_on_one_id'), 'metrics_runs', ['one_on_one_id'], unique=False)
    op.create_index(op.f('ix_metrics_runs_status'), 'metrics_runs', ['status'], unique=False)

    op.create_table('notifications',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('user_id', sa.String(length=36), nullable=False),
    sa.Column('notification_type', notificationtype, nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('related_id', sa.String(length=36), nullable=True),
    sa.Column('related_type', sa.String(length=32), nullable=True),
    sa.Column('is_read', sa.Boolean(), nullable=False),
    sa.Column('is_emailed', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index(op.f('ix_notifications_is_read'), 'notifications', ['is_read'], unique=False)
    op.create_index('ix_notifications_related', 'notifications', ['related_id', 'notification_type'], unique=False)


def downgrade():
    op.drop_table('notifications')
    op.drop_table('metrics_runs')
    op.drop_table('metrics_snapshots')
    op.drop_table('action_items')
    op.drop_table('notes')
    op.drop_table('answers')
    op.drop_table('one_on_ones')
    op.drop_table('questions')
    op.drop_table('team_memberships')
    op.drop_table('teams')
    op.drop_table('users')
    for enum_type in (
        notificationtype, metricsrunstatus, actionstatus, notetype, participantrole,
        questioncategory, questionscope, questiontype, sessionstatus, userrole,
    ):
        enum_type.drop(op.get_bind(), checkfirst=True)
