"""create team, question and attempt tables

Revision ID: 5c2a9e1f7b30
Revises:
Create Date: 2026-01-10 18:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e1f7b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'team',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('total_elapsed_ms', sa.BigInteger(), nullable=False),
        sa.Column('current_level_started_at', sa.BigInteger(), nullable=True),
        sa.Column('level_durations', sa.Text(), nullable=True),
        sa.Column('locked_until', sa.BigInteger(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.Text(), nullable=True),
        sa.Column('correct_answer', sa.String(length=256), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('question') as batch_op:
        batch_op.create_index(batch_op.f('ix_question_level'), ['level'], unique=True)

    op.create_table(
        'attempt',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('team_id', sa.String(length=64), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('submitted_answer', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('elapsed_ms', sa.BigInteger(), nullable=True),
        sa.Column('submitted_at', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('attempt') as batch_op:
        batch_op.create_index(batch_op.f('ix_attempt_team_id'), ['team_id'], unique=False)


def downgrade():
    with op.batch_alter_table('attempt') as batch_op:
        batch_op.drop_index(batch_op.f('ix_attempt_team_id'))
    op.drop_table('attempt')
    with op.batch_alter_table('question') as batch_op:
        batch_op.drop_index(batch_op.f('ix_question_level'))
    op.drop_table('question')
    op.drop_table('team')
