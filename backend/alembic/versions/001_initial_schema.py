"""Initial schema

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


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'EVALUATOR', 'CHILD', name='role'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email')
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Create evaluators table
    op.create_table(
        'evaluators',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('evaluator_type', sa.Enum('STUDENT', 'TEACHER', 'GRADUATE', name='evaluatortype'), nullable=False),
        sa.Column('document_type', sa.String(20), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.UniqueConstraint('code', name='uq_evaluators_code')
    )

    # Create children table
    op.create_table(
        'children',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('grade', sa.Integer(), nullable=False),
        sa.Column('school', sa.String(200), nullable=False),
        sa.Column('shift', sa.Enum('MORNING', 'AFTERNOON', 'CONTINUOUS', name='shift'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    # Create surveys table
    op.create_table(
        'surveys',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('child_id', sa.Integer(), nullable=False),
        sa.Column('evaluator_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('session_number', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['child_id'], ['children.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['evaluator_id'], ['evaluators.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_surveys_child_id', 'surveys', ['child_id'])
    op.create_index('ix_surveys_evaluator_id', 'surveys', ['evaluator_id'])

    # Create survey_results table
    op.create_table(
        'survey_results',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('survey_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('mental_exam_summary', sa.Text(), nullable=True),
        sa.Column('clinical_history', sa.Text(), nullable=True),
        sa.Column('learning_diagnosis', sa.Text(), nullable=True),
        sa.Column('academic_problems', sa.Text(), nullable=True),
        sa.Column('literacy_problems', sa.Text(), nullable=True),
        sa.Column('pretest_evaluation', sa.Text(), nullable=True),
        sa.Column('posttest_evaluation', sa.Text(), nullable=True),
        sa.Column('session_notes', sa.Text(), nullable=True),
        sa.Column('behavioral_observation', sa.Text(), nullable=True),
        sa.Column('recommendations', sa.Text(), nullable=True),
        sa.Column('achievement_indicators', sa.Text(), nullable=True),
        sa.Column('game_type', sa.String(50), nullable=True),
        sa.Column('difficulty', sa.String(50), nullable=True),
        sa.Column('current_level', sa.Integer(), nullable=True),
        sa.Column('accumulated_score', sa.Integer(), nullable=True),
        sa.Column('last_played', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['survey_id'], ['surveys.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_survey_results_survey_id', 'survey_results', ['survey_id'])

    # Create games table
    op.create_table(
        'games',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # Create levels table
    op.create_table(
        'levels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('difficulty', sa.String(50), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('max_time', sa.Integer(), nullable=True),
        sa.Column('training_audio', sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['games.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_levels_game_id', 'levels', ['game_id'])

    # Create game_progress table
    op.create_table(
        'game_progress',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('level_id', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('time', sa.Integer(), nullable=False),
        sa.Column('hits', sa.Integer(), nullable=False),
        sa.Column('misses', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['game_id'], ['games.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['level_id'], ['levels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'game_id', 'level_id', name='uq_progress_user_game_level')
    )
    op.create_index('ix_game_progress_user_id', 'game_progress', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_game_progress_user_id', table_name='game_progress')
    op.drop_table('game_progress')
    op.drop_index('ix_levels_game_id', table_name='levels')
    op.drop_table('levels')
    op.drop_table('games')
    op.drop_index('ix_survey_results_survey_id', table_name='survey_results')
    op.drop_table('survey_results')
    op.drop_index('ix_surveys_evaluator_id', table_name='surveys')
    op.drop_index('ix_surveys_child_id', table_name='surveys')
    op.drop_table('surveys')
    op.drop_table('children')
    op.drop_table('evaluators')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS shift')
    op.execute('DROP TYPE IF EXISTS evaluatortype')
    op.execute('DROP TYPE IF EXISTS role')
