"""create scores and daily_stats tables

Revision ID: 5c2a9e7d1b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e7d1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'scores' not in existing_tables:
        op.create_table(
            'scores',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('name', sa.String(length=20), nullable=False),
            sa.Column('wpm', sa.Integer(), nullable=False),
            sa.Column('accuracy', sa.Integer(), nullable=False),
            sa.Column('time', sa.Float(), nullable=False),
            sa.Column('difficulty', sa.String(length=16), nullable=False),
            sa.Column('timestamp', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_scores_timestamp', 'scores', ['timestamp'])
        op.create_index('ix_scores_wpm', 'scores', ['wpm'])
        op.create_index('ix_scores_difficulty', 'scores', ['difficulty'])

    if 'daily_stats' not in existing_tables:
        op.create_table(
            'daily_stats',
            sa.Column('date', sa.Date(), primary_key=True),
            sa.Column('total_races', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('average_wpm', sa.Float(), nullable=False, server_default='0'),
            sa.Column('highest_wpm', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_players', sa.Integer(), nullable=False, server_default='0'),
        )


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'daily_stats' in existing_tables:
        op.drop_table('daily_stats')
    if 'scores' in existing_tables:
        op.drop_index('ix_scores_difficulty', table_name='scores')
        op.drop_index('ix_scores_wpm', table_name='scores')
        op.drop_index('ix_scores_timestamp', table_name='scores')
        op.drop_table('scores')
