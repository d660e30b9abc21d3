"""SQLite connection and schema initialization."""

import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

# Tracks which database paths have had schema applied (avoid running on every connection)
_schema_initialized: set[str] = set()
_schema_lock = threading.Lock()

SCHEMA_SQL = """
-- Insurance policies
CREATE TABLE IF NOT EXISTS policies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    instrument_id INTEGER NOT NULL,
    brand TEXT NOT NULL,
    coverage_amount INTEGER NOT NULL,
    premium_paid INTEGER NOT NULL DEFAULT 0,
    start_date INTEGER NOT NULL,
    end_date INTEGER NOT NULL,
    owner TEXT NOT NULL,
    active INTEGER NOT NULL DEFAULT 0,
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT DEFAULT (datetime('now'))
);

-- Claims (at most one per policy)
CREATE TABLE IF NOT EXISTS claims (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    policy_id INTEGER NOT NULL UNIQUE,
    claim_amount INTEGER NOT NULL,
    claim_date INTEGER NOT NULL,
    reason TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    evidence_hash BLOB NOT NULL,
    approved INTEGER NOT NULL DEFAULT 0,
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT DEFAULT (datetime('now')),
    FOREIGN KEY (policy_id) REFERENCES policies(id)
);

-- Value-guarantee warranties
CREATE TABLE IF NOT EXISTS warranties (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    instrument_id INTEGER NOT NULL,
    brand TEXT NOT NULL,
    guarantee_percentage INTEGER NOT NULL,
    start_date INTEGER NOT NULL,
    duration_years INTEGER NOT NULL,
    owner TEXT NOT NULL,
    active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT DEFAULT (datetime('now'))
);

-- Ledger-wide state (single row)
CREATE TABLE IF NOT EXISTS ledger_state (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    current_year INTEGER NOT NULL,
    insurance_fund INTEGER NOT NULL CHECK (insurance_fund >= 0),
    admin TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);

-- Audit log (state changes)
CREATE TABLE IF NOT EXISTS ledger_audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    record_type TEXT NOT NULL,
    record_id INTEGER,
    action TEXT NOT NULL,
    actor TEXT,
    details TEXT,
    created_at TEXT DEFAULT (datetime('now'))
);

-- Fund journal (premium deposits and approved payouts)
CREATE TABLE IF NOT EXISTS fund_movements (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    amount INTEGER NOT NULL,
    policy_id INTEGER,
    claim_id INTEGER,
    balance_after INTEGER NOT NULL,
    created_at TEXT DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_policies_owner ON policies(owner);
CREATE INDEX IF NOT EXISTS idx_audit_record ON ledger_audit_log(record_type, record_id);
"""


def get_db_path() -> str:
    """Return path to SQLite database from LEDGER_DB_PATH env or default data/ledger.db."""
    path = os.environ.get("LEDGER_DB_PATH", "data/ledger.db")
    return path


def init_db(path: str | None = None) -> None:
    """Create tables if they do not exist."""
    db_path = path or get_db_path()
    p = Path(db_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
    with _schema_lock:
        _schema_initialized.add(db_path)


def _ensure_schema(db_path: str) -> None:
    """Run schema once per path. Thread-safe."""
    with _schema_lock:
        if db_path in _schema_initialized:
            return
    init_db(db_path)


@contextmanager
def get_connection(path: str | None = None, immediate: bool = False):
    """Context manager yielding a database connection. Ensures schema exists once per path.

    The connection commits when the block exits normally and rolls back when it raises.
    With ``immediate=True`` the write lock is taken up front (BEGIN IMMEDIATE) so the
    whole block reads and writes one consistent snapshot.
    """
    db_path = path or get_db_path()
    p = Path(db_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    _ensure_schema(db_path)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
