"""Shared pytest fixtures for all test files."""

import os
import tempfile

import pytest

from coverage_ledger.db.database import init_db

OWNER = "SP1TESTOWNER"
USER1 = "SP1TESTUSER1"


@pytest.fixture(autouse=True)
def temp_db():
    """Use a temporary SQLite DB for tests."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    init_db(path)
    prev = os.environ.get("LEDGER_DB_PATH")
    os.environ["LEDGER_DB_PATH"] = path
    try:
        yield path
    finally:
        if prev is None:
            os.environ.pop("LEDGER_DB_PATH", None)
        else:
            os.environ["LEDGER_DB_PATH"] = prev
        try:
            os.unlink(path)
        except OSError:
            # Ignore errors when cleaning up the temporary DB file (e.g., if already removed).
            pass


@pytest.fixture(autouse=True)
def reset_global_metrics():
    """Reset the global LedgerMetrics singleton before and after each test."""
    from coverage_ledger.observability.metrics import reset_metrics

    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def ledger(temp_db):
    """Fresh ledger in 2023 with a 1,000,000 fund administered by OWNER."""
    from coverage_ledger.ledger.service import CoverageLedger

    return CoverageLedger(
        admin=OWNER,
        db_path=temp_db,
        initial_year=2023,
        initial_fund=1_000_000,
    )


@pytest.fixture
def active_policy(ledger):
    """Policy 1: Buffet, coverage 50000, 2023-2028, premium 5000 paid by USER1."""
    ledger.create_policy(1, "Buffet", 50000, 2023, 5, USER1).unwrap()
    ledger.pay_premium(1, 5000, USER1).unwrap()
    return 1
