"""Ledger repository: append, exact-id lookup, owner scan, audit logging and fund journal."""

import json
from contextlib import contextmanager
from typing import Any, Iterator

from coverage_ledger.db.constants import (
    RECORD_CLAIM,
    RECORD_POLICY,
    RECORD_TABLES,
    RECORD_WARRANTY,
    STATUS_PENDING,
)
from coverage_ledger.db.database import get_connection
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode


class LedgerSession:
    """Reads and writes bound to one open connection (one atomic transaction)."""

    def __init__(self, conn, max_records: int):
        self._conn = conn
        self._max_records = max_records

    # ------------------------------------------------------------------
    # Ledger-wide state
    # ------------------------------------------------------------------

    def get_state(self) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT current_year, insurance_fund, admin FROM ledger_state WHERE id = 1"
        ).fetchone()
        return None if row is None else dict(row)

    def init_state(self, current_year: int, insurance_fund: int, admin: str) -> bool:
        """Insert the state row if absent. Returns True when it was created."""
        cur = self._conn.execute(
            """
            INSERT OR IGNORE INTO ledger_state (id, current_year, insurance_fund, admin)
            VALUES (1, ?, ?, ?)
            """,
            (current_year, insurance_fund, admin),
        )
        return cur.rowcount == 1

    def set_current_year(self, year: int) -> None:
        self._conn.execute(
            "UPDATE ledger_state SET current_year = ?, updated_at = datetime('now') WHERE id = 1",
            (year,),
        )

    def set_insurance_fund(self, balance: int) -> None:
        self._conn.execute(
            "UPDATE ledger_state SET insurance_fund = ?, updated_at = datetime('now') WHERE id = 1",
            (balance,),
        )

    def set_admin(self, admin: str) -> None:
        self._conn.execute(
            "UPDATE ledger_state SET admin = ?, updated_at = datetime('now') WHERE id = 1",
            (admin,),
        )

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def count(self, record_type: str) -> int:
        table = RECORD_TABLES[record_type]
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def ensure_capacity(self, record_type: str) -> None:
        """Raise CapacityExceeded if the collection already holds max_records rows."""
        if self.count(record_type) >= self._max_records:
            raise LedgerError(
                LedgerErrorCode.CAPACITY_EXCEEDED,
                f"{record_type} collection is full ({self._max_records} records)",
            )

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def insert_policy(
        self,
        instrument_id: int,
        brand: str,
        coverage_amount: int,
        start_date: int,
        end_date: int,
        owner: str,
    ) -> int:
        self.ensure_capacity(RECORD_POLICY)
        cur = self._conn.execute(
            """
            INSERT INTO policies (
                instrument_id, brand, coverage_amount, premium_paid,
                start_date, end_date, owner, active
            ) VALUES (?, ?, ?, 0, ?, ?, ?, 0)
            """,
            (instrument_id, brand, coverage_amount, start_date, end_date, owner),
        )
        return cur.lastrowid

    def get_policy(self, policy_id: int) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT * FROM policies WHERE id = ?", (policy_id,)
        ).fetchone()
        return None if row is None else dict(row)

    def activate_policy(self, policy_id: int, premium_paid: int) -> None:
        self._conn.execute(
            """
            UPDATE policies
            SET premium_paid = ?, active = 1, updated_at = datetime('now')
            WHERE id = ?
            """,
            (premium_paid, policy_id),
        )

    def list_policies_by_owner(self, owner: str) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            "SELECT * FROM policies WHERE owner = ? ORDER BY id ASC", (owner,)
        ).fetchall()
        return [dict(r) for r in rows]

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def insert_claim(
        self,
        policy_id: int,
        claim_amount: int,
        claim_date: int,
        reason: str,
        evidence_hash: bytes,
    ) -> int:
        self.ensure_capacity(RECORD_CLAIM)
        cur = self._conn.execute(
            """
            INSERT INTO claims (
                policy_id, claim_amount, claim_date, reason, status, evidence_hash, approved
            ) VALUES (?, ?, ?, ?, ?, ?, 0)
            """,
            (policy_id, claim_amount, claim_date, reason, STATUS_PENDING, evidence_hash),
        )
        return cur.lastrowid

    def get_claim(self, claim_id: int) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT * FROM claims WHERE id = ?", (claim_id,)
        ).fetchone()
        return None if row is None else dict(row)

    def get_claim_by_policy(self, policy_id: int) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT * FROM claims WHERE policy_id = ?", (policy_id,)
        ).fetchone()
        return None if row is None else dict(row)

    def adjudicate_claim(self, claim_id: int, approved: bool, status: str) -> None:
        self._conn.execute(
            """
            UPDATE claims
            SET approved = ?, status = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (1 if approved else 0, status, claim_id),
        )

    # ------------------------------------------------------------------
    # Warranties
    # ------------------------------------------------------------------

    def insert_warranty(
        self,
        instrument_id: int,
        brand: str,
        guarantee_percentage: int,
        start_date: int,
        duration_years: int,
        owner: str,
    ) -> int:
        self.ensure_capacity(RECORD_WARRANTY)
        cur = self._conn.execute(
            """
            INSERT INTO warranties (
                instrument_id, brand, guarantee_percentage, start_date,
                duration_years, owner, active
            ) VALUES (?, ?, ?, ?, ?, ?, 1)
            """,
            (instrument_id, brand, guarantee_percentage, start_date, duration_years, owner),
        )
        return cur.lastrowid

    def get_warranty(self, warranty_id: int) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT * FROM warranties WHERE id = ?", (warranty_id,)
        ).fetchone()
        return None if row is None else dict(row)

    # ------------------------------------------------------------------
    # Audit log and fund journal
    # ------------------------------------------------------------------

    def log_audit(
        self,
        record_type: str,
        record_id: int | None,
        action: str,
        actor: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self._conn.execute(
            """
            INSERT INTO ledger_audit_log (record_type, record_id, action, actor, details)
            VALUES (?, ?, ?, ?, ?)
            """,
            (record_type, record_id, action, actor, json.dumps(details or {})),
        )

    def record_fund_movement(
        self,
        kind: str,
        amount: int,
        balance_after: int,
        policy_id: int | None = None,
        claim_id: int | None = None,
    ) -> None:
        self._conn.execute(
            """
            INSERT INTO fund_movements (kind, amount, policy_id, claim_id, balance_after)
            VALUES (?, ?, ?, ?, ?)
            """,
            (kind, amount, policy_id, claim_id, balance_after),
        )

    def get_history(self, record_type: str, record_id: int | None) -> list[dict[str, Any]]:
        if record_id is None:
            rows = self._conn.execute(
                """
                SELECT id, record_type, record_id, action, actor, details, created_at
                FROM ledger_audit_log
                WHERE record_type = ? AND record_id IS NULL
                ORDER BY id ASC
                """,
                (record_type,),
            ).fetchall()
        else:
            rows = self._conn.execute(
                """
                SELECT id, record_type, record_id, action, actor, details, created_at
                FROM ledger_audit_log
                WHERE record_type = ? AND record_id = ?
                ORDER BY id ASC
                """,
                (record_type, record_id),
            ).fetchall()
        history = []
        for r in rows:
            entry = dict(r)
            entry["details"] = json.loads(entry["details"]) if entry["details"] else {}
            history.append(entry)
        return history

    def list_fund_movements(self) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            "SELECT * FROM fund_movements ORDER BY id ASC"
        ).fetchall()
        return [dict(r) for r in rows]


class LedgerRepository:
    """Repository for ledger persistence. Every session is one transaction."""

    def __init__(self, db_path: str | None = None, max_records: int = 1000):
        self._db_path = db_path
        self._max_records = max_records

    @property
    def max_records(self) -> int:
        return self._max_records

    @contextmanager
    def session(self, write: bool = False) -> Iterator[LedgerSession]:
        """Open a transaction. Commits on normal exit, rolls back if the block raises."""
        with get_connection(self._db_path, immediate=write) as conn:
            yield LedgerSession(conn, self._max_records)
