"""Tests for database and LedgerRepository."""

import sqlite3

import pytest

from coverage_ledger.db.database import get_connection, get_db_path, init_db
from coverage_ledger.db.repository import LedgerRepository
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode

EVIDENCE = bytes([7]) * 32


def test_get_db_path_default(monkeypatch):
    """Default path is data/ledger.db when env unset."""
    monkeypatch.delenv("LEDGER_DB_PATH", raising=False)
    assert get_db_path() == "data/ledger.db"


def test_get_db_path_env(monkeypatch):
    """LEDGER_DB_PATH env overrides default."""
    monkeypatch.setenv("LEDGER_DB_PATH", "/tmp/custom-ledger.db")
    assert get_db_path() == "/tmp/custom-ledger.db"


def test_init_db_creates_tables(temp_db):
    """init_db creates record, state, audit and fund tables."""
    with get_connection(temp_db) as conn:
        cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        tables = [row[0] for row in cur.fetchall()]
    for name in ("policies", "claims", "warranties", "ledger_state", "ledger_audit_log", "fund_movements"):
        assert name in tables


def test_init_db_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "ledger.db"
    init_db(str(path))
    assert path.exists()


@pytest.fixture
def repo(temp_db):
    repo = LedgerRepository(db_path=temp_db, max_records=5)
    with repo.session(write=True) as session:
        session.init_state(2023, 1000, "SP1TESTOWNER")
    return repo


def test_init_state_only_once(repo):
    with repo.session(write=True) as session:
        assert session.init_state(1999, 0, "other") is False
        assert session.get_state() == {
            "current_year": 2023,
            "insurance_fund": 1000,
            "admin": "SP1TESTOWNER",
        }


def test_policy_ids_start_at_one(repo):
    with repo.session(write=True) as session:
        assert session.insert_policy(1, "Buffet", 50000, 2023, 2028, "u1") == 1
        assert session.insert_policy(2, "Yamaha", 30000, 2023, 2026, "u2") == 2
        row = session.get_policy(1)
    assert row["brand"] == "Buffet"
    assert row["active"] == 0
    assert row["premium_paid"] == 0


def test_session_rolls_back_on_error(repo):
    with pytest.raises(RuntimeError):
        with repo.session(write=True) as session:
            session.insert_policy(1, "Buffet", 50000, 2023, 2028, "u1")
            raise RuntimeError("boom")
    with repo.session() as session:
        assert session.get_policy(1) is None
        # Rolled-back insert does not advance the id counter
        assert session.count("policy") == 0
    with repo.session(write=True) as session:
        assert session.insert_policy(1, "Buffet", 50000, 2023, 2028, "u1") == 1


def test_activate_policy(repo):
    with repo.session(write=True) as session:
        pid = session.insert_policy(1, "Buffet", 50000, 2023, 2028, "u1")
        session.activate_policy(pid, 5000)
        row = session.get_policy(pid)
    assert row["active"] == 1
    assert row["premium_paid"] == 5000


def test_list_policies_by_owner(repo):
    with repo.session(write=True) as session:
        session.insert_policy(1, "A", 1, 2023, 2024, "u1")
        session.insert_policy(2, "B", 1, 2023, 2024, "u2")
        session.insert_policy(3, "C", 1, 2023, 2024, "u1")
        rows = session.list_policies_by_owner("u1")
    assert [r["id"] for r in rows] == [1, 3]


def test_claim_unique_per_policy(repo):
    with repo.session(write=True) as session:
        pid = session.insert_policy(1, "A", 100, 2023, 2024, "u1")
        session.insert_claim(pid, 10, 2023, "x", EVIDENCE)
    with pytest.raises(sqlite3.IntegrityError):
        with repo.session(write=True) as session:
            session.insert_claim(pid, 20, 2023, "y", EVIDENCE)


def test_adjudicate_and_lookup_by_policy(repo):
    with repo.session(write=True) as session:
        pid = session.insert_policy(1, "A", 100, 2023, 2024, "u1")
        cid = session.insert_claim(pid, 10, 2023, "x", EVIDENCE)
        session.adjudicate_claim(cid, True, "approved")
        row = session.get_claim_by_policy(pid)
    assert row["id"] == cid
    assert row["approved"] == 1
    assert row["status"] == "approved"
    assert row["evidence_hash"] == EVIDENCE


def test_capacity_is_enforced(temp_db):
    repo = LedgerRepository(db_path=temp_db, max_records=1)
    with repo.session(write=True) as session:
        session.insert_warranty(1, "A", 80, 2023, 5, "admin")
        with pytest.raises(LedgerError) as excinfo:
            session.insert_warranty(2, "A", 80, 2023, 5, "admin")
    assert excinfo.value.code == LedgerErrorCode.CAPACITY_EXCEEDED


def test_history_and_fund_movements(repo):
    with repo.session(write=True) as session:
        session.log_audit("policy", 1, "created", "u1", {"brand": "A"})
        session.log_audit("ledger", None, "year_set", "admin", {"new_year": 2024})
        session.record_fund_movement("premium", 50, balance_after=1050, policy_id=1)
    with repo.session() as session:
        history = session.get_history("policy", 1)
        ledger_history = session.get_history("ledger", None)
        movements = session.list_fund_movements()
    assert history[0]["details"] == {"brand": "A"}
    assert history[0]["actor"] == "u1"
    assert ledger_history[0]["action"] == "year_set"
    assert movements[0]["kind"] == "premium"
    assert movements[0]["balance_after"] == 1050


def test_negative_fund_is_refused_by_schema(repo):
    with pytest.raises(sqlite3.IntegrityError):
        with repo.session(write=True) as session:
            session.set_insurance_fund(-1)
    with repo.session() as session:
        assert session.get_state()["insurance_fund"] == 1000
