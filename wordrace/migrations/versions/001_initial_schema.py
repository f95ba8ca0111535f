"""Initial schema: rooms, players, rounds, words and category analytics

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

from wordrace.migrations.util import get_uuid_type, get_timestamp_default, json_list_column

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    uuid_type = get_uuid_type()
    now_default = get_timestamp_default()

    op.create_table(
        'rooms',
        sa.Column('room_id', uuid_type, nullable=False),
        sa.Column('code', sa.String(12), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='waiting'),
        sa.Column('room_type', sa.String(20), nullable=False, server_default='private'),
        sa.Column('host_player_id', sa.String(64), nullable=False),
        sa.Column('min_players', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('max_players', sa.Integer(), nullable=False, server_default='12'),
        sa.Column('preferred_players', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('round_number', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('failed_rounds', sa.Integer(), nullable=False, server_default='0'),
        json_list_column('letters'),
        sa.Column('base_category', sa.String(200), nullable=True),
        sa.Column('current_mini_category', sa.String(200), nullable=True),
        sa.Column('current_mini_category_id', sa.String(50), nullable=True),
        sa.Column('round_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('round_winner_id', sa.String(64), nullable=True),
        sa.Column('round_winning_word', sa.String(100), nullable=True),
        sa.Column('round_won_at', sa.DateTime(timezone=True), nullable=True),
        json_list_column('shuffle_votes'),
        json_list_column('used_mini_category_ids'),
        json_list_column('failed_mini_category_ids'),
        sa.Column('match_winner_id', sa.String(64), nullable=True),
        sa.Column('match_winning_word', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('room_id'),
    )
    op.create_index('ix_rooms_code', 'rooms', ['code'], unique=True)
    op.create_index('ix_rooms_status_type', 'rooms', ['status', 'room_type'])

    op.create_table(
        'room_players',
        sa.Column('room_player_id', uuid_type, nullable=False),
        sa.Column('room_id', uuid_type, nullable=False),
        sa.Column('player_id', sa.String(64), nullable=False),
        sa.Column('display_name', sa.String(50), nullable=False),
        json_list_column('collected_letters'),
        sa.Column('tutorial_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_ready', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.room_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('room_player_id'),
        sa.UniqueConstraint('room_id', 'player_id', name='uq_room_players_room_player'),
    )
    op.create_index('ix_room_players_player_id', 'room_players', ['player_id'])

    op.create_table(
        'round_history',
        sa.Column('round_history_id', uuid_type, nullable=False),
        sa.Column('room_id', uuid_type, nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        json_list_column('letters'),
        sa.Column('mini_category', sa.String(200), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.room_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('round_history_id'),
        sa.UniqueConstraint('room_id', 'round_number', name='uq_round_history_room_round'),
    )

    op.create_table(
        'used_words',
        sa.Column('used_word_id', uuid_type, nullable=False),
        sa.Column('room_id', uuid_type, nullable=False),
        sa.Column('player_id', sa.String(64), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(200), nullable=False),
        sa.Column('word', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.room_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('used_word_id'),
    )
    op.create_index('ix_used_words_room_category', 'used_words', ['room_id', 'category'])
    op.create_index('ix_used_words_room_round_player', 'used_words', ['room_id', 'round_number', 'player_id'])

    op.create_table(
        'category_stats',
        sa.Column('category_name', sa.String(200), nullable=False),
        sa.Column('total_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('successful_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('dead_rounds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.PrimaryKeyConstraint('category_name'),
    )

    op.create_table(
        'player_category_history',
        sa.Column('history_id', uuid_type, nullable=False),
        sa.Column('player_id', sa.String(64), nullable=False),
        sa.Column('room_id', uuid_type, nullable=True),
        sa.Column('game_number', sa.Integer(), nullable=False),
        sa.Column('category_name', sa.String(200), nullable=False),
        sa.Column('category_type', sa.String(10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.PrimaryKeyConstraint('history_id'),
    )
    op.create_index(
        'ix_player_category_history_player_game', 'player_category_history', ['player_id', 'game_number']
    )

    op.create_table(
        'category_letter_history',
        sa.Column('id', uuid_type, nullable=False),
        sa.Column('player_id', sa.String(64), nullable=False),
        sa.Column('category_name', sa.String(200), nullable=False),
        sa.Column('letter', sa.String(1), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('player_id', 'category_name', 'letter', name='uq_category_letter_history'),
    )
    op.create_index(
        'ix_category_letter_history_player_used', 'category_letter_history', ['player_id', 'last_used_at']
    )

    op.create_table(
        'game_session_stats',
        sa.Column('id', uuid_type, nullable=False),
        sa.Column('room_id', uuid_type, nullable=False),
        sa.Column('room_code', sa.String(12), nullable=False),
        sa.Column('player_id', sa.String(64), nullable=False),
        sa.Column('display_name', sa.String(50), nullable=True),
        sa.Column('players_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('game_start_time', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.Column('game_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('mini_categories_seen', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('grand_attempt_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('first_grand_attempt_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('letters_at_first_grand_attempt', sa.Integer(), nullable=True),
        sa.Column('rounds_before_first_grand_attempt', sa.Integer(), nullable=True),
        sa.Column('total_letters_collected', sa.Integer(), nullable=True),
        sa.Column('total_rounds', sa.Integer(), nullable=True),
        sa.Column('result', sa.String(10), nullable=True),
        sa.Column('final_grand_word', sa.String(100), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=now_default),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_session_stats_room_player', 'game_session_stats', ['room_id', 'player_id'])
    op.create_index('ix_game_session_stats_player', 'game_session_stats', ['player_id'])


def downgrade() -> None:
    op.drop_index('ix_game_session_stats_player', table_name='game_session_stats')
    op.drop_index('ix_game_session_stats_room_player', table_name='game_session_stats')
    op.drop_table('game_session_stats')

    op.drop_index('ix_category_letter_history_player_used', table_name='category_letter_history')
    op.drop_table('category_letter_history')

    op.drop_index('ix_player_category_history_player_game', table_name='player_category_history')
    op.drop_table('player_category_history')

    op.drop_table('category_stats')

    op.drop_index('ix_used_words_room_round_player', table_name='used_words')
    op.drop_index('ix_used_words_room_category', table_name='used_words')
    op.drop_table('used_words')

    op.drop_table('round_history')

    op.drop_index('ix_room_players_player_id', table_name='room_players')
    op.drop_table('room_players')

    op.drop_index('ix_rooms_status_type', table_name='rooms')
    op.drop_index('ix_rooms_code', table_name='rooms')
    op.drop_table('rooms')
