"""Initial migration - users, quizzes, hosted sessions, attempts

Revision ID: 0_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUESTION_TYPES = ('single-choice', 'multi-choice', 'true-false', 'short-answer', 'free-text')


def upgrade() -> None:
    # ── Create enums ──────────────────────────────────────────────────
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE question_type_enum AS ENUM (
                'single-choice', 'multi-choice', 'true-false', 'short-answer', 'free-text'
            );
        EXCEPTION WHEN duplicate_object THEN null;
        END $$;
    """)

    # ── users table ───────────────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ── quizzes table ─────────────────────────────────────────────────
    op.create_table(
        'quizzes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quizzes_owner_id', 'quizzes', ['owner_id'])

    # ── questions table ───────────────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('question_type', postgresql.ENUM(*QUESTION_TYPES, name='question_type_enum', create_type=False), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('answer', sa.JSON(), nullable=True),
        sa.Column('explanation', sa.Text(), nullable=False, server_default=''),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_quiz_id', 'questions', ['quiz_id'])

    # ── hosted_sessions table ─────────────────────────────────────────
    op.create_table(
        'hosted_sessions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=True),
        sa.Column('host_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('questions', sa.JSON(), nullable=False),
        sa.Column('answer_key', sa.JSON(), nullable=True),
        sa.Column('time_limit', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('stopped_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['host_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_hosted_sessions_session_id', 'hosted_sessions', ['session_id'], unique=True)
    op.create_index(
        'uq_hosted_sessions_active_quiz',
        'hosted_sessions',
        ['quiz_id'],
        unique=True,
        postgresql_where=sa.text('active'),
    )

    # ── attempts table ────────────────────────────────────────────────
    op.create_table(
        'attempts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=False),
        sa.Column('hosted_session_id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=True),
        sa.Column('user_id', sa.UUID(), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['hosted_session_id'], ['hosted_sessions.id']),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_attempts_session_id', 'attempts', ['session_id'])
    op.create_index('ix_attempts_user_id', 'attempts', ['user_id'])
    op.create_index('ix_attempts_session_user', 'attempts', ['session_id', 'user_id'])
    op.create_index('ix_attempts_session_name', 'attempts', ['session_id', 'name'])

    # ── attempt_answers table ─────────────────────────────────────────
    op.create_table(
        'attempt_answers',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('attempt_id', sa.UUID(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=True),
        sa.Column('question_type', sa.String(32), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('submitted_answer', sa.JSON(), nullable=True),
        sa.Column('correct_answer', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['attempt_id'], ['attempts.id']),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('attempt_answers')
    op.drop_index('ix_attempts_session_name', table_name='attempts')
    op.drop_index('ix_attempts_session_user', table_name='attempts')
    op.drop_index('ix_attempts_user_id', table_name='attempts')
    op.drop_index('ix_attempts_session_id', table_name='attempts')
    op.drop_table('attempts')
    op.drop_index('uq_hosted_sessions_active_quiz', table_name='hosted_sessions')
    op.drop_index('ix_hosted_sessions_session_id', table_name='hosted_sessions')
    op.drop_table('hosted_sessions')
    op.drop_index('ix_questions_quiz_id', table_name='questions')
    op.drop_table('questions')
    op.drop_index('ix_quizzes_owner_id', table_name='quizzes')
    op.drop_table('quizzes')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.execute("DROP TYPE IF EXISTS question_type_enum")
