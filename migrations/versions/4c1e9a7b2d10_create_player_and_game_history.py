"""create player and game_history tables

Revision ID: 4c1e9a7b2d10
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c1e9a7b2d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    # Databases created with `flask db-reset` already have both tables
    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('wins', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('losses', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('draws', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('last_active', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_player_username', 'player', ['username'], unique=True)

    if 'game_history' not in existing_tables:
        op.create_table(
            'game_history',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('match_id', sa.String(length=100), nullable=False),
            sa.Column('player_x_username', sa.String(length=64), nullable=False),
            sa.Column('player_o_username', sa.String(length=64), nullable=False),
            sa.Column('winner', sa.String(length=8), nullable=False),
            sa.Column('board', sa.Text(), nullable=False),
            sa.Column('moves_count', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_history_match_id', 'game_history', ['match_id'], unique=False)
        op.create_index('ix_game_history_created_at', 'game_history', ['created_at'], unique=False)


def downgrade():
    op.drop_index('ix_game_history_created_at', table_name='game_history')
    op.drop_index('ix_game_history_match_id', table_name='game_history')
    op.drop_table('game_history')
    op.drop_index('ix_player_username', table_name='player')
    op.drop_table('player')
