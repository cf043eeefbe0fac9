"""Initial schema: accounts, portfolios, trades, snapshots, quests, XP.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-01
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(30) UNIQUE NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            balance DOUBLE PRECISION NOT NULL DEFAULT 10000 CHECK (balance >= 0),
            total_trades INTEGER NOT NULL DEFAULT 0,
            xp INTEGER NOT NULL DEFAULT 0 CHECK (xp >= 0),
            level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 1),
            rank VARCHAR(16) NOT NULL DEFAULT 'INICIANTE',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Quests (static catalog) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS quests (
            id VARCHAR(64) PRIMARY KEY,
            title VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            requirement_type VARCHAR(32) NOT NULL,
            requirement_value DOUBLE PRECISION NOT NULL,
            reward_xp INTEGER NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_quest_progress (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            quest_id VARCHAR(64) NOT NULL REFERENCES quests(id) ON DELETE CASCADE,
            progress DOUBLE PRECISION NOT NULL DEFAULT 0,
            completed BOOLEAN NOT NULL DEFAULT false,
            claimed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ,
            claimed_at TIMESTAMPTZ,
            CONSTRAINT uq_user_quest_progress_user_quest UNIQUE (user_id, quest_id)
        )
    """)

    # --- Portfolios & holdings ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS portfolios (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS holdings (
            id BIGSERIAL PRIMARY KEY,
            portfolio_id BIGINT NOT NULL REFERENCES portfolios(id) ON DELETE CASCADE,
            symbol VARCHAR(8) NOT NULL,
            amount DOUBLE PRECISION NOT NULL CHECK (amount > 0),
            average_buy_price DOUBLE PRECISION NOT NULL CHECK (average_buy_price >= 0),
            total_invested DOUBLE PRECISION NOT NULL CHECK (total_invested >= 0),
            CONSTRAINT uq_holdings_portfolio_symbol UNIQUE (portfolio_id, symbol)
        )
    """)

    # --- Trades (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS trades (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(4) NOT NULL CHECK (type IN ('BUY', 'SELL')),
            symbol VARCHAR(8) NOT NULL,
            amount DOUBLE PRECISION NOT NULL,
            price DOUBLE PRECISION NOT NULL,
            total DOUBLE PRECISION NOT NULL,
            realized_profit_loss DOUBLE PRECISION,
            status VARCHAR(16) NOT NULL DEFAULT 'COMPLETED',
            executed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_trades_user_executed
        ON trades(user_id, executed_at)
    """)

    # --- Portfolio snapshots ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS portfolio_snapshots (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            snapshot_date DATE NOT NULL,
            total_value DOUBLE PRECISION NOT NULL,
            total_invested DOUBLE PRECISION NOT NULL,
            profit_loss DOUBLE PRECISION NOT NULL,
            profit_loss_percent DOUBLE PRECISION NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_portfolio_snapshots_user_date UNIQUE (user_id, snapshot_date)
        )
    """)

    # --- XP Ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS xp_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            idempotency_key VARCHAR(256) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_xp_ledger_user_source
        ON xp_ledger(user_id, source)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS xp_ledger")
    op.execute("DROP TABLE IF EXISTS portfolio_snapshots")
    op.execute("DROP TABLE IF EXISTS trades")
    op.execute("DROP TABLE IF EXISTS holdings")
    op.execute("DROP TABLE IF EXISTS portfolios")
    op.execute("DROP TABLE IF EXISTS user_quest_progress")
    op.execute("DROP TABLE IF EXISTS quests")
    op.execute("DROP TABLE IF EXISTS users")
