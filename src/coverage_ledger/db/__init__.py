"""SQLite storage for ledger records, audit log and fund journal."""

from coverage_ledger.db.database import get_connection, get_db_path, init_db
from coverage_ledger.db.repository import LedgerRepository, LedgerSession

__all__ = [
    "LedgerRepository",
    "LedgerSession",
    "get_connection",
    "get_db_path",
    "init_db",
]
