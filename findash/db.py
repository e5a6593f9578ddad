import sqlite3
from pathlib import Path

def get_conn(db_path: str) -> sqlite3.Connection:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    # autocommit; batches open explicit transactions. Shared by the scheduler thread.
    conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn

DDL = [
    # Market quotes (append-only)
    """
CREATE TABLE IF NOT EXISTS markets (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  category TEXT NOT NULL,
  symbol TEXT NOT NULL,
  name TEXT NOT NULL,
  value REAL NOT NULL,
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_markets_symbol_time ON markets(symbol, timestamp DESC);",

    # Economic releases (append-only). release_date is the period the value
    # describes, timestamp is when the batch was ingested.
    """
CREATE TABLE IF NOT EXISTS economics (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  indicator TEXT NOT NULL,
  country TEXT NOT NULL,
  value REAL NOT NULL,
  release_date TEXT NOT NULL,
  period TEXT,
  surprise REAL,               -- NULL when there is no consensus, never 0
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_economics_key_time ON economics(indicator, country, timestamp DESC);",

    # Private equity metrics (append-only)
    """
CREATE TABLE IF NOT EXISTS pe_metrics (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  metric TEXT NOT NULL,
  strategy TEXT NOT NULL,
  region TEXT,                 -- NULL is a distinct key value, not a wildcard
  value REAL NOT NULL,
  period TEXT,
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_pe_metrics_key_time ON pe_metrics(metric, strategy, region, timestamp DESC);",

    # Portfolio positions (upserted by id)
    """
CREATE TABLE IF NOT EXISTS positions (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  asset_class TEXT NOT NULL,
  market_value REAL NOT NULL,
  ytd_dollar REAL,
  ytd_percent REAL,
  irr REAL,
  tvpi REAL,
  nav_percent REAL,
  nav_target REAL,
  bucket TEXT NOT NULL,
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_positions_bucket ON positions(bucket);",

    # Risk measures per (as_of_date, bucket), appended on every computation
    """
CREATE TABLE IF NOT EXISTS risk_measures (
  id TEXT PRIMARY KEY,
  as_of_date TEXT NOT NULL,
  bucket TEXT NOT NULL,
  var_99 REAL,
  stress_pl REAL,
  scenario TEXT,
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_risk_measures_key_time ON risk_measures(as_of_date, bucket, timestamp DESC);",
]

def migrate(conn: sqlite3.Connection):
    cur = conn.cursor()
    for stmt in DDL:
        cur.execute(stmt)
    conn.commit()
