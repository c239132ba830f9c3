"""create odds schema

Revision ID: c3d9e8f21a07
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c3d9e8f21a07'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create sports, games, bookmakers, odds and line_movements."""
    op.create_table(
        "sports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(50), nullable=False, unique=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("group", sa.String(50), nullable=False, server_default=""),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "games",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("sport_id", sa.Integer(), sa.ForeignKey("sports.id"), nullable=False),
        sa.Column("home_team", sa.String(100), nullable=False),
        sa.Column("away_team", sa.String(100), nullable=False),
        sa.Column("commence_time", sa.DateTime(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
        sa.Column("last_update", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_games_sport_commence", "games", ["sport_id", "commence_time"])

    op.create_table(
        "bookmakers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(100), nullable=False, unique=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("last_update", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "odds",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.String(100), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("bookmaker_id", sa.Integer(), sa.ForeignKey("bookmakers.id"), nullable=False),
        sa.Column("market", sa.String(20), nullable=False),
        sa.Column("outcome_type", sa.String(10), nullable=False),
        sa.Column("outcome_name", sa.String(100), nullable=True),
        sa.Column("price", sa.String(20), nullable=False),
        sa.Column("point", sa.String(20), nullable=True),
        sa.Column("last_update", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "game_id", "bookmaker_id", "market", "outcome_type", name="uq_odds_game_book_market_outcome"
        ),
        sa.CheckConstraint(
            "outcome_type IN ('home', 'away', 'over', 'under')", name="ck_odds_outcome_type"
        ),
    )
    op.create_index("ix_odds_game_market", "odds", ["game_id", "market"])

    op.create_table(
        "line_movements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.String(100), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("bookmaker_id", sa.Integer(), sa.ForeignKey("bookmakers.id"), nullable=True),
        sa.Column("market", sa.String(20), nullable=False),
        sa.Column("outcome_type", sa.String(10), nullable=True),
        sa.Column("old_value", sa.String(20), nullable=False),
        sa.Column("new_value", sa.String(20), nullable=False),
        sa.Column("movement", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_line_movements_timestamp", "line_movements", ["timestamp"])
    op.create_index("ix_line_movements_game_timestamp", "line_movements", ["game_id", "timestamp"])


def downgrade() -> None:
    """Drop the odds schema."""
    op.drop_index("ix_line_movements_game_timestamp", table_name="line_movements")
    op.drop_index("ix_line_movements_timestamp", table_name="line_movements")
    op.drop_table("line_movements")
    op.drop_index("ix_odds_game_market", table_name="odds")
    op.drop_table("odds")
    op.drop_table("bookmakers")
    op.drop_index("ix_games_sport_commence", table_name="games")
    op.drop_table("games")
    op.drop_table("sports")
