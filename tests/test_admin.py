"""Tests for admin operations, ledger bootstrap and capacity limits."""

import pytest

from coverage_ledger.db.constants import (
    ACTION_ADMIN_TRANSFERRED,
    ACTION_YEAR_SET,
    RECORD_LEDGER,
)
from coverage_ledger.ledger.service import CoverageLedger
from coverage_ledger.models.errors import LedgerErrorCode

OWNER = "SP1TESTOWNER"
USER1 = "SP1TESTUSER1"
USER2 = "SP1TESTUSER2"
EVIDENCE = bytes([1]) * 32


class TestSetCurrentYear:
    """Tests for set_current_year."""

    def test_owner_sets_year(self, ledger):
        result = ledger.set_current_year(2024, OWNER)
        assert result.ok is True
        assert result.value is True
        assert ledger.current_year == 2024

    def test_rejects_unauthorized(self, ledger):
        result = ledger.set_current_year(2024, USER1)
        assert result.error == LedgerErrorCode.UNAUTHORIZED
        assert ledger.current_year == 2023

    def test_time_may_move_backward(self, ledger):
        ledger.set_current_year(2030, OWNER)
        ledger.set_current_year(2020, OWNER)
        assert ledger.current_year == 2020

    def test_year_change_is_audited(self, ledger):
        ledger.set_current_year(2025, OWNER)
        history = ledger.get_record_history(RECORD_LEDGER)
        assert history[-1]["action"] == ACTION_YEAR_SET
        assert history[-1]["details"] == {"old_year": 2023, "new_year": 2025}


class TestTransferAdmin:
    """Tests for transfer_admin."""

    def test_new_admin_gains_privileges(self, ledger):
        assert ledger.transfer_admin(USER2, OWNER).ok is True
        assert ledger.admin == USER2
        assert ledger.set_current_year(2024, USER2).ok is True
        assert ledger.set_current_year(2025, OWNER).error == LedgerErrorCode.UNAUTHORIZED

    def test_rejects_non_admin(self, ledger):
        assert ledger.transfer_admin(USER1, USER1).error == LedgerErrorCode.UNAUTHORIZED
        assert ledger.admin == OWNER

    def test_rejects_empty_principal(self, ledger):
        assert ledger.transfer_admin("  ", OWNER).error == LedgerErrorCode.UNAUTHORIZED
        assert ledger.admin == OWNER

    def test_transfer_is_audited(self, ledger):
        ledger.transfer_admin(USER2, OWNER)
        entry = ledger.get_record_history(RECORD_LEDGER)[-1]
        assert entry["action"] == ACTION_ADMIN_TRANSFERRED
        assert entry["actor"] == OWNER
        assert entry["details"]["new_admin"] == USER2


class TestStateQueries:
    """Tests for the ledger-state queries."""

    def test_queries_return_results(self, ledger):
        assert ledger.get_current_year().value == 2023
        assert ledger.get_insurance_fund().value == 1_000_000
        assert ledger.get_admin().value == OWNER

    def test_queries_follow_writes(self, ledger):
        ledger.set_current_year(2027, OWNER).unwrap()
        ledger.transfer_admin(USER2, OWNER).unwrap()
        assert ledger.get_current_year().value == 2027
        assert ledger.get_admin().value == USER2


class TestBootstrap:
    """Tests for ledger construction against new and existing stores."""

    def test_defaults_from_settings(self, temp_db, monkeypatch):
        monkeypatch.setenv("LEDGER_INITIAL_YEAR", "2030")
        monkeypatch.setenv("LEDGER_INITIAL_FUND", "42")
        monkeypatch.setenv("LEDGER_ADMIN", "SP1ENVADMIN")
        ledger = CoverageLedger(db_path=temp_db)
        state = ledger.get_state()
        assert state.current_year == 2030
        assert state.insurance_fund == 42
        assert state.admin == "SP1ENVADMIN"

    def test_existing_state_is_kept(self, ledger, temp_db):
        ledger.set_current_year(2026, OWNER)
        reopened = CoverageLedger(admin=USER1, db_path=temp_db, initial_year=2000, initial_fund=5)
        assert reopened.current_year == 2026
        assert reopened.insurance_fund == 1_000_000
        assert reopened.admin == OWNER

    def test_records_survive_reopen(self, ledger, temp_db):
        ledger.create_policy(1, "Buffet", 50000, 2023, 5, USER1)
        reopened = CoverageLedger(db_path=temp_db)
        assert reopened.get_policy(1).value.owner == USER1
        assert reopened.create_policy(2, "Yamaha", 30000, 2023, 3, USER1).value.policy_id == 2


class TestCapacity:
    """Tests for the configurable collection bound."""

    def test_policy_capacity(self, temp_db):
        ledger = CoverageLedger(admin=OWNER, db_path=temp_db, initial_year=2023, max_records=2)
        assert ledger.create_policy(1, "A", 50000, 2023, 5, USER1).ok
        assert ledger.create_policy(2, "B", 50000, 2023, 5, USER1).ok
        result = ledger.create_policy(3, "C", 50000, 2023, 5, USER1)
        assert result.error == LedgerErrorCode.CAPACITY_EXCEEDED
        assert len(ledger.get_my_policies(USER1).value) == 2

    def test_claim_capacity(self, temp_db):
        from coverage_ledger.db.repository import LedgerRepository
        from coverage_ledger.models.errors import LedgerError

        ledger = CoverageLedger(admin=OWNER, db_path=temp_db, initial_year=2023)
        ledger.create_policy(1, "A", 50000, 2023, 5, USER1).unwrap()
        repo = LedgerRepository(db_path=temp_db, max_records=0)
        with pytest.raises(LedgerError) as excinfo:
            with repo.session(write=True) as session:
                session.insert_claim(1, 100, 2023, "Damage", EVIDENCE)
        assert excinfo.value.code == LedgerErrorCode.CAPACITY_EXCEEDED
        assert ledger.get_claim(1).error == LedgerErrorCode.INVALID_CLAIM

    def test_warranty_capacity(self, temp_db):
        ledger = CoverageLedger(admin=OWNER, db_path=temp_db, initial_year=2023, max_records=1)
        assert ledger.create_warranty(1, "A", 80, 2023, 5, OWNER).ok
        result = ledger.create_warranty(2, "A", 80, 2023, 5, OWNER)
        assert result.error == LedgerErrorCode.CAPACITY_EXCEEDED

    def test_capacity_from_settings(self, temp_db, monkeypatch):
        monkeypatch.setenv("LEDGER_MAX_RECORDS", "1")
        ledger = CoverageLedger(admin=OWNER, db_path=temp_db, initial_year=2023)
        assert ledger.create_policy(1, "A", 50000, 2023, 5, USER1).ok
        assert ledger.create_policy(2, "A", 50000, 2023, 5, USER1).error == LedgerErrorCode.CAPACITY_EXCEEDED
