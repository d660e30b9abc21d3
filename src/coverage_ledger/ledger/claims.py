"""Claims lifecycle: filing against a policy and adjudication with fund debit."""

import logging

from coverage_ledger.config.settings import EVIDENCE_HASH_SIZE
from coverage_ledger.db.constants import (
    ACTION_ADJUDICATED,
    ACTION_CREATED,
    MOVEMENT_PAYOUT,
    RECORD_CLAIM,
    STATUS_PENDING,
)
from coverage_ledger.db.repository import LedgerSession
from coverage_ledger.ledger.admin import load_state, require_admin
from coverage_ledger.ledger.policies import load_policy
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode
from coverage_ledger.models.ledger import Claim, claim_from_row
from coverage_ledger.utils.sanitization import (
    normalize_digest,
    sanitize_reason,
    sanitize_status,
)

logger = logging.getLogger(__name__)


def load_claim(session: LedgerSession, claim_id: int) -> Claim:
    row = session.get_claim(claim_id)
    if row is None:
        raise LedgerError(LedgerErrorCode.INVALID_CLAIM, f"Claim not found: {claim_id}")
    return claim_from_row(row)


def file_claim_impl(
    session: LedgerSession,
    policy_id: int,
    claim_amount: int,
    reason: str,
    evidence_hash: bytes | str,
    caller: str,
) -> int:
    """File a claim. Checks run in a fixed order and the first failure wins."""
    policy = load_policy(session, policy_id)
    if policy.owner != caller:
        raise LedgerError(
            LedgerErrorCode.UNAUTHORIZED, f"Policy {policy_id} is not owned by {caller}"
        )
    if not policy.active:
        raise LedgerError(
            LedgerErrorCode.INVALID_POLICY, f"Policy {policy_id} has no premium paid"
        )

    state = load_state(session)
    if state.current_year > policy.end_date:
        raise LedgerError(
            LedgerErrorCode.POLICY_EXPIRED,
            f"Policy {policy_id} ended in {policy.end_date}",
        )

    if claim_amount < 0 or claim_amount > policy.coverage_amount:
        raise LedgerError(
            LedgerErrorCode.INVALID_CLAIM,
            f"Claim amount {claim_amount} outside coverage 0..{policy.coverage_amount}",
        )
    digest = normalize_digest(evidence_hash, EVIDENCE_HASH_SIZE)
    if digest is None:
        raise LedgerError(
            LedgerErrorCode.INVALID_CLAIM,
            f"Evidence hash must be exactly {EVIDENCE_HASH_SIZE} bytes",
        )

    if session.get_claim_by_policy(policy_id) is not None:
        raise LedgerError(
            LedgerErrorCode.ALREADY_CLAIMED, f"Policy {policy_id} already has a claim"
        )

    claim_id = session.insert_claim(
        policy_id=policy_id,
        claim_amount=claim_amount,
        claim_date=state.current_year,
        reason=sanitize_reason(reason),
        evidence_hash=digest,
    )
    session.log_audit(
        RECORD_CLAIM,
        claim_id,
        ACTION_CREATED,
        caller,
        {"policy_id": policy_id, "claim_amount": claim_amount, "evidence_hash": digest.hex()},
    )
    return claim_id


def adjudicate_claim_impl(
    session: LedgerSession,
    claim_id: int,
    approve: bool,
    status_message: str,
    caller: str,
) -> int:
    """Approve or reject a claim. Returns the payout (0 when rejected).

    Funds are checked before anything is written; an InsufficientFunds rejection
    leaves the claim exactly as it was.
    """
    state = require_admin(session, caller)
    claim = load_claim(session, claim_id)

    payout = claim.claim_amount if approve else 0
    if approve and state.insurance_fund < payout:
        raise LedgerError(
            LedgerErrorCode.INSUFFICIENT_FUNDS,
            f"Fund balance {state.insurance_fund} cannot cover payout {payout}",
        )

    status = sanitize_status(status_message)
    session.adjudicate_claim(claim_id, approve, status)
    if approve:
        balance = state.insurance_fund - payout
        session.set_insurance_fund(balance)
        session.record_fund_movement(
            MOVEMENT_PAYOUT,
            payout,
            balance_after=balance,
            policy_id=claim.policy_id,
            claim_id=claim_id,
        )
    session.log_audit(
        RECORD_CLAIM,
        claim_id,
        ACTION_ADJUDICATED,
        caller,
        {
            "approved": approve,
            "old_status": claim.status,
            "new_status": status,
            "payout": payout,
        },
    )
    if claim.status != STATUS_PENDING or claim.approved:
        logger.info("Claim %s re-adjudicated (was %r)", claim_id, claim.status)
    return payout
