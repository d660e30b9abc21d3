"""Policy lifecycle: creation and premium payment."""

import logging

from coverage_ledger.config.settings import MINIMUM_PREMIUM, PREMIUM_RATE_PERCENT
from coverage_ledger.db.constants import (
    ACTION_CREATED,
    ACTION_PREMIUM_PAID,
    MOVEMENT_PREMIUM,
    RECORD_POLICY,
)
from coverage_ledger.db.repository import LedgerSession
from coverage_ledger.ledger.admin import load_state
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode
from coverage_ledger.models.ledger import Policy, PolicyQuote, policy_from_row
from coverage_ledger.utils.sanitization import sanitize_brand

logger = logging.getLogger(__name__)


def compute_premium(coverage_amount: int, duration_years: int) -> int:
    """Premium for a policy: floor(coverage * years * 2 / 100)."""
    return (coverage_amount * duration_years * PREMIUM_RATE_PERCENT) // 100


def load_policy(session: LedgerSession, policy_id: int) -> Policy:
    row = session.get_policy(policy_id)
    if row is None:
        raise LedgerError(LedgerErrorCode.INVALID_POLICY, f"Policy not found: {policy_id}")
    return policy_from_row(row)


def create_policy_impl(
    session: LedgerSession,
    instrument_id: int,
    brand: str,
    coverage_amount: int,
    start_date: int,
    duration_years: int,
    caller: str,
) -> PolicyQuote:
    state = load_state(session)
    if start_date < state.current_year:
        raise LedgerError(
            LedgerErrorCode.INVALID_DATE,
            f"Start year {start_date} is before current year {state.current_year}",
        )
    end_date = start_date + duration_years
    if end_date <= start_date:
        raise LedgerError(
            LedgerErrorCode.INVALID_DATE, f"Duration must be positive, got {duration_years}"
        )

    premium = compute_premium(coverage_amount, duration_years)
    if premium < MINIMUM_PREMIUM:
        raise LedgerError(
            LedgerErrorCode.MINIMUM_PREMIUM_NOT_MET,
            f"Premium {premium} is below the minimum of {MINIMUM_PREMIUM}",
        )

    clean_brand = sanitize_brand(brand)
    policy_id = session.insert_policy(
        instrument_id=instrument_id,
        brand=clean_brand,
        coverage_amount=coverage_amount,
        start_date=start_date,
        end_date=end_date,
        owner=caller,
    )
    session.log_audit(
        RECORD_POLICY,
        policy_id,
        ACTION_CREATED,
        caller,
        {
            "instrument_id": instrument_id,
            "brand": clean_brand,
            "coverage_amount": coverage_amount,
            "start_date": start_date,
            "end_date": end_date,
            "premium_required": premium,
        },
    )
    return PolicyQuote(policy_id=policy_id, premium_required=premium)


def pay_premium_impl(
    session: LedgerSession,
    policy_id: int,
    amount: int,
    caller: str,
) -> bool:
    policy = load_policy(session, policy_id)
    if policy.owner != caller:
        raise LedgerError(
            LedgerErrorCode.UNAUTHORIZED, f"Policy {policy_id} is not owned by {caller}"
        )

    # Recomputed from stored terms; the quote returned at creation is not trusted.
    required = compute_premium(policy.coverage_amount, policy.duration_years)
    if amount < required:
        raise LedgerError(
            LedgerErrorCode.INSUFFICIENT_PREMIUM,
            f"Payment {amount} is below required premium {required}",
        )

    state = load_state(session)
    balance = state.insurance_fund + amount
    session.activate_policy(policy_id, amount)
    session.set_insurance_fund(balance)
    session.record_fund_movement(
        MOVEMENT_PREMIUM, amount, balance_after=balance, policy_id=policy_id
    )
    session.log_audit(
        RECORD_POLICY,
        policy_id,
        ACTION_PREMIUM_PAID,
        caller,
        {"amount": amount, "required": required, "was_active": policy.active},
    )
    if policy.active:
        logger.info("Policy %s re-paid; premium_paid replaced with %s", policy_id, amount)
    return True


def get_my_policies_impl(session: LedgerSession, caller: str) -> list[Policy]:
    return [policy_from_row(r) for r in session.list_policies_by_owner(caller)]
