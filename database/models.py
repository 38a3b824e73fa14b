"""
Database Schema
===============
Defines all the tables in our SQLite database.

- runners: Tokens that crossed the runner market cap threshold
- wallets: Every early buyer we've seen, with its participations and scores

A wallet's participations live in a JSON column on its row. They are always
read and written together with the score and badges, so a reader never
sees a wallet whose participations and confidence score disagree.

We use raw SQL (not an ORM) to keep things simple and fast.
"""

CREATE_TABLES_SQL = """

-- =============================================
-- Runner tokens
-- =============================================
CREATE TABLE IF NOT EXISTS runners (
    id INTEGER PRIMARY KEY AUTOINCREMENT,

    -- Token identity
    address TEXT UNIQUE NOT NULL,          -- Token mint address
    name TEXT NOT NULL DEFAULT '',
    symbol TEXT NOT NULL DEFAULT '',
    logo_uri TEXT,

    -- Market data at the time it was registered
    ath_price REAL NOT NULL DEFAULT 0,     -- All-time-high price (USD)
    ath_market_cap REAL NOT NULL DEFAULT 0,
    total_supply REAL NOT NULL DEFAULT 0,  -- Supply divided by decimals

    -- JSON: {"early": ts, "late": ts, "two_million": ts, "five_million": ts}
    milestones TEXT NOT NULL DEFAULT '{}',

    -- Has the scoring pipeline finished for this token?
    checked BOOLEAN NOT NULL DEFAULT FALSE,

    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- =============================================
-- Wallets and their scores
-- =============================================
CREATE TABLE IF NOT EXISTS wallets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,

    address TEXT UNIQUE NOT NULL,           -- Solana wallet address

    -- JSON list of runner participations (token snapshot + buys/sells + score)
    participations TEXT NOT NULL DEFAULT '[]',

    confidence_score REAL NOT NULL DEFAULT 0,
    pnl REAL NOT NULL DEFAULT 0,            -- Realized PnL across all runners (USD)
    badges TEXT NOT NULL DEFAULT '[]',      -- JSON list of badge tags

    first_seen TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    score_updated_at TIMESTAMP
);

-- =============================================
-- Indexes for fast lookups
-- =============================================
CREATE INDEX IF NOT EXISTS idx_wallets_confidence ON wallets(confidence_score DESC);
CREATE INDEX IF NOT EXISTS idx_runners_checked ON runners(checked);

"""
