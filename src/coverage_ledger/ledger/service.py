"""CoverageLedger: the public entry point for every ledger operation.

Each call runs under the instance's single-writer lock inside one SQLite
transaction. Rejections are returned as ``OperationResult`` failures and the
transaction is rolled back, so a rejected call leaves no trace in the store.
"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from coverage_ledger.config.settings import get_ledger_config
from coverage_ledger.db.constants import RECORD_TYPES
from coverage_ledger.db.repository import LedgerRepository, LedgerSession
from coverage_ledger.ledger.admin import (
    load_state,
    set_current_year_impl,
    transfer_admin_impl,
)
from coverage_ledger.ledger.claims import (
    adjudicate_claim_impl,
    file_claim_impl,
    load_claim,
)
from coverage_ledger.ledger.policies import (
    create_policy_impl,
    get_my_policies_impl,
    load_policy,
    pay_premium_impl,
)
from coverage_ledger.ledger.warranties import (
    check_warranty_guarantee_impl,
    create_warranty_impl,
    load_unexpired_warranty,
    load_warranty,
)
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode, OperationResult
from coverage_ledger.models.ledger import FundMovement, LedgerState, claim_from_row
from coverage_ledger.observability import (
    get_logger,
    ledger_context,
    log_ledger_event,
    track_operation,
)
from coverage_ledger.valuation.price_oracle import FixedPriceOracle, PriceOracle

logger = get_logger(__name__)


class CoverageLedger:
    """Policies, claims and warranties over one store and one insurance fund."""

    def __init__(
        self,
        admin: Optional[str] = None,
        db_path: Optional[str] = None,
        *,
        initial_year: Optional[int] = None,
        initial_fund: Optional[int] = None,
        max_records: Optional[int] = None,
        oracle: Optional[PriceOracle] = None,
    ):
        config = get_ledger_config()
        self._repo = LedgerRepository(
            db_path=db_path,
            max_records=max_records if max_records is not None else config["max_records"],
        )
        self._oracle = oracle or FixedPriceOracle()
        self._lock = threading.Lock()

        # Bootstrap values only apply to a fresh store; an existing state row wins.
        with self._repo.session(write=True) as session:
            created = session.init_state(
                current_year=initial_year if initial_year is not None else config["initial_year"],
                insurance_fund=initial_fund if initial_fund is not None else config["initial_fund"],
                admin=admin or config["admin"],
            )
            state = load_state(session)
        if created:
            log_ledger_event(
                logger,
                "ledger_initialized",
                current_year=state.current_year,
                insurance_fund=state.insurance_fund,
                admin=state.admin,
            )
        else:
            logger.debug("Opened existing ledger (admin=%s)", state.admin)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        caller: Optional[str],
        func: Callable[..., Any],
        *args: Any,
        write: bool = True,
        then: Optional[Callable[[Any], Any]] = None,
    ) -> OperationResult:
        """Run ``func`` in one transaction under the lock, then ``then`` on its value outside it."""
        start = time.perf_counter()
        with ledger_context(operation=operation, caller=caller):
            try:
                with self._lock:
                    with self._repo.session(write=write) as session:
                        value = func(session, *args)
                if then is not None:
                    value = then(value)
            except LedgerError as exc:
                latency_ms = (time.perf_counter() - start) * 1000
                track_operation(operation, latency_ms=latency_ms, error=exc.code.value)
                log_ledger_event(
                    logger,
                    "operation_rejected",
                    level=logging.WARNING,
                    code=exc.code.value,
                    reason=exc.message,
                )
                return OperationResult.failure(exc)
            latency_ms = (time.perf_counter() - start) * 1000
            track_operation(operation, latency_ms=latency_ms)
            if write:
                log_ledger_event(logger, "operation_committed", result=value)
        return OperationResult.success(value)

    # ------------------------------------------------------------------
    # Policy lifecycle
    # ------------------------------------------------------------------

    def create_policy(
        self,
        instrument_id: int,
        brand: str,
        coverage_amount: int,
        start_date: int,
        duration_years: int,
        caller: str,
    ) -> OperationResult:
        """Create an inactive policy. Value: PolicyQuote(policy_id, premium_required)."""
        return self._run(
            "create_policy",
            caller,
            create_policy_impl,
            instrument_id,
            brand,
            coverage_amount,
            start_date,
            duration_years,
            caller,
        )

    def pay_premium(self, policy_id: int, amount: int, caller: str) -> OperationResult:
        """Pay a policy's premium and activate it. Value: True."""
        return self._run("pay_premium", caller, pay_premium_impl, policy_id, amount, caller)

    # ------------------------------------------------------------------
    # Claims lifecycle
    # ------------------------------------------------------------------

    def file_claim(
        self,
        policy_id: int,
        claim_amount: int,
        reason: str,
        evidence_hash: bytes | str,
        caller: str,
    ) -> OperationResult:
        """File the single claim a policy allows. Value: claim ID."""
        return self._run(
            "file_claim",
            caller,
            file_claim_impl,
            policy_id,
            claim_amount,
            reason,
            evidence_hash,
            caller,
        )

    def adjudicate_claim(
        self,
        claim_id: int,
        approve: bool,
        status_message: str,
        caller: str,
    ) -> OperationResult:
        """Approve or reject a claim (admin only). Value: payout, 0 when rejected."""
        return self._run(
            "adjudicate_claim",
            caller,
            adjudicate_claim_impl,
            claim_id,
            approve,
            status_message,
            caller,
        )

    # ------------------------------------------------------------------
    # Warranty lifecycle
    # ------------------------------------------------------------------

    def create_warranty(
        self,
        instrument_id: int,
        brand: str,
        guarantee_percentage: int,
        start_date: int,
        duration_years: int,
        caller: str,
    ) -> OperationResult:
        """Issue an active warranty (admin only). Value: warranty ID."""
        return self._run(
            "create_warranty",
            caller,
            create_warranty_impl,
            instrument_id,
            brand,
            guarantee_percentage,
            start_date,
            duration_years,
            caller,
        )

    def check_warranty_guarantee(self, warranty_id: int, current_value: int) -> OperationResult:
        """Evaluate a warranty against a current valuation. Value: GuaranteeCheck."""
        return self._run(
            "check_warranty_guarantee",
            None,
            load_unexpired_warranty,
            warranty_id,
            write=False,
            then=lambda warranty: check_warranty_guarantee_impl(
                warranty, current_value, self._oracle
            ),
        )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def set_current_year(self, year: int, caller: str) -> OperationResult:
        return self._run("set_current_year", caller, set_current_year_impl, year, caller)

    def transfer_admin(self, new_admin: str, caller: str) -> OperationResult:
        return self._run("transfer_admin", caller, transfer_admin_impl, new_admin, caller)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_policy(self, policy_id: int) -> OperationResult:
        return self._run("get_policy", None, load_policy, policy_id, write=False)

    def get_claim(self, claim_id: int) -> OperationResult:
        return self._run("get_claim", None, load_claim, claim_id, write=False)

    def get_warranty(self, warranty_id: int) -> OperationResult:
        return self._run("get_warranty", None, load_warranty, warranty_id, write=False)

    def get_my_policies(self, caller: str) -> OperationResult:
        return self._run("get_my_policies", caller, get_my_policies_impl, caller, write=False)

    def get_claim_for_policy(self, policy_id: int) -> OperationResult:
        def _lookup(session: LedgerSession, pid: int):
            row = session.get_claim_by_policy(pid)
            if row is None:
                raise LedgerError(
                    LedgerErrorCode.INVALID_CLAIM, f"No claim filed against policy {pid}"
                )
            return claim_from_row(row)

        return self._run("get_claim_for_policy", None, _lookup, policy_id, write=False)

    def get_current_year(self) -> OperationResult:
        return self._run(
            "get_current_year", None, lambda session: load_state(session).current_year, write=False
        )

    def get_insurance_fund(self) -> OperationResult:
        return self._run(
            "get_insurance_fund", None, lambda session: load_state(session).insurance_fund, write=False
        )

    def get_admin(self) -> OperationResult:
        return self._run("get_admin", None, lambda session: load_state(session).admin, write=False)

    def get_state(self) -> LedgerState:
        with self._lock, self._repo.session() as session:
            return load_state(session)

    @property
    def current_year(self) -> int:
        return self.get_state().current_year

    @property
    def insurance_fund(self) -> int:
        return self.get_state().insurance_fund

    @property
    def admin(self) -> str:
        return self.get_state().admin

    def get_record_history(self, record_type: str, record_id: Optional[int] = None) -> list[dict[str, Any]]:
        """Audit entries for one record (or ledger-wide entries when record_id is None)."""
        if record_type not in RECORD_TYPES:
            raise ValueError(f"Unknown record type: {record_type}")
        with self._lock, self._repo.session() as session:
            return session.get_history(record_type, record_id)

    def get_fund_movements(self) -> list[FundMovement]:
        with self._lock, self._repo.session() as session:
            return [FundMovement(**row) for row in session.list_fund_movements()]
