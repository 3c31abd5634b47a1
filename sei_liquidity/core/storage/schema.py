"""
DDL for the pool tables.

Run through a synchronous SQLAlchemy engine (``db:migrate``); every statement
is idempotent so the migration can be re-run safely.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

POOLS_TABLE = "liquidity_pools"
POOL_HISTORY_TABLE = "pool_history"

CREATE_POOLS_TABLE = f"""
CREATE TABLE IF NOT EXISTS {POOLS_TABLE} (
    id UUID PRIMARY KEY,
    pool_address TEXT NOT NULL UNIQUE,
    dex TEXT NOT NULL,
    token0 TEXT NOT NULL,
    token1 TEXT NOT NULL,
    token0_symbol TEXT,
    token1_symbol TEXT,
    fee_tier TEXT,
    tvl NUMERIC,
    volume_24h NUMERIC,
    apr NUMERIC,
    metadata JSONB,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

CREATE_POOL_HISTORY_TABLE = f"""
CREATE TABLE IF NOT EXISTS {POOL_HISTORY_TABLE} (
    id BIGSERIAL PRIMARY KEY,
    pool_id UUID NOT NULL REFERENCES {POOLS_TABLE}(id) ON DELETE CASCADE,
    timestamp TIMESTAMPTZ NOT NULL,
    reserve0 NUMERIC NOT NULL,
    reserve1 NUMERIC NOT NULL,
    tvl NUMERIC,
    volume NUMERIC,
    price NUMERIC,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

CREATE_INDEXES = [
    f"CREATE INDEX IF NOT EXISTS idx_{POOLS_TABLE}_dex ON {POOLS_TABLE}(dex)",
    f"CREATE INDEX IF NOT EXISTS idx_{POOLS_TABLE}_active ON {POOLS_TABLE}(is_active) WHERE is_active = TRUE",
    f"CREATE INDEX IF NOT EXISTS idx_{POOL_HISTORY_TABLE}_pool_timestamp ON {POOL_HISTORY_TABLE}(pool_id, timestamp)",
    f"CREATE INDEX IF NOT EXISTS idx_{POOL_HISTORY_TABLE}_timestamp ON {POOL_HISTORY_TABLE}(timestamp)",
]


def get_database_engine(database_url: Optional[str] = None) -> Engine:
    """Get a SQLAlchemy engine for the configured database."""
    if database_url is None:
        from ...config import get_config

        database_url = get_config().database.sqlalchemy_url
    return create_engine(database_url)


def setup_pool_tables(engine: Engine) -> bool:
    """
    Create the pool and pool-history tables and their indexes if missing.

    Returns:
        True once the schema is in place
    """
    with engine.connect() as conn:
        logger.info(f"Ensuring tables {POOLS_TABLE}, {POOL_HISTORY_TABLE}...")
        conn.execute(text(CREATE_POOLS_TABLE))
        conn.execute(text(CREATE_POOL_HISTORY_TABLE))
        for statement in CREATE_INDEXES:
            conn.execute(text(statement))
        conn.commit()
        logger.info("Pool tables are ready")
    return True
