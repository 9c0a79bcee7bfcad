SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at REAL NOT NULL
);

-- Coins: hidden by players or seeded by the system
CREATE TABLE IF NOT EXISTS coins (
    coin_id      TEXT PRIMARY KEY,
    coin_type    TEXT NOT NULL CHECK (coin_type IN ('fixed', 'pool')),
    value        INTEGER,
    contribution INTEGER NOT NULL CHECK (contribution >= 0),
    latitude     REAL NOT NULL,
    longitude    REAL NOT NULL,
    hider_id     TEXT NOT NULL,
    status       TEXT NOT NULL DEFAULT 'visible' CHECK (status IN ('visible', 'collected', 'deleted')),
    created_at   REAL NOT NULL,
    updated_at   REAL NOT NULL,
    CHECK (coin_type = 'pool' OR value IS NOT NULL)
);

-- Grids: fixed-size cells with their last activity stamp
CREATE TABLE IF NOT EXISTS grids (
    grid_id       TEXT PRIMARY KEY,
    center_lat    REAL NOT NULL,
    center_lon    REAL NOT NULL,
    last_activity REAL NOT NULL,
    created_at    REAL NOT NULL,
    UNIQUE (center_lat, center_lon)
);

-- Wallets: all monetary columns are integer cents
CREATE TABLE IF NOT EXISTS wallets (
    user_id         TEXT PRIMARY KEY,
    total_balance   INTEGER NOT NULL DEFAULT 0,
    gas_tank        INTEGER NOT NULL DEFAULT 0 CHECK (gas_tank >= 0),
    parked          INTEGER NOT NULL DEFAULT 0 CHECK (parked >= 0),
    pending         INTEGER NOT NULL DEFAULT 0 CHECK (pending >= 0),
    last_gas_charge REAL,
    created_at      REAL NOT NULL,
    updated_at      REAL NOT NULL,
    CHECK (total_balance = gas_tank + parked + pending)
);

-- Per-user aggregates; find_limit tracks the highest hidden contribution
CREATE TABLE IF NOT EXISTS user_stats (
    user_id              TEXT PRIMARY KEY,
    find_limit           INTEGER NOT NULL DEFAULT 100,
    total_found_count    INTEGER NOT NULL DEFAULT 0,
    total_found_value    INTEGER NOT NULL DEFAULT 0,
    total_hidden_count   INTEGER NOT NULL DEFAULT 0,
    total_hidden_value   INTEGER NOT NULL DEFAULT 0,
    highest_hidden_value INTEGER NOT NULL DEFAULT 0,
    updated_at           REAL NOT NULL
);

-- Transactions: append-only ledger, only status may change
CREATE TABLE IF NOT EXISTS transactions (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT NOT NULL,
    type        TEXT NOT NULL CHECK (type IN ('hidden', 'found', 'refund', 'parked', 'unparked', 'gas_consumed')),
    amount      INTEGER NOT NULL,
    status      TEXT NOT NULL DEFAULT 'confirmed' CHECK (status IN ('pending', 'confirmed')),
    coin_id     TEXT,
    description TEXT NOT NULL DEFAULT '',
    created_at  REAL NOT NULL,
    FOREIGN KEY (coin_id) REFERENCES coins(coin_id)
);

-- Coin finds: one per collected coin
CREATE TABLE IF NOT EXISTS coin_finds (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    coin_id        TEXT NOT NULL UNIQUE,
    finder_id      TEXT NOT NULL,
    value_received INTEGER NOT NULL,
    status         TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'confirmed')),
    found_at       REAL NOT NULL,
    FOREIGN KEY (coin_id) REFERENCES coins(coin_id)
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_coins_status_lat_lon ON coins(status, latitude, longitude);
CREATE INDEX IF NOT EXISTS idx_coins_hider ON coins(hider_id);
CREATE INDEX IF NOT EXISTS idx_grids_activity ON grids(last_activity);
CREATE INDEX IF NOT EXISTS idx_transactions_user ON transactions(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_transactions_pending ON transactions(user_id, status) WHERE status = 'pending';
CREATE INDEX IF NOT EXISTS idx_finds_finder ON coin_finds(finder_id, found_at);
"""
