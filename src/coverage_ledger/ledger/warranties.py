"""Warranty lifecycle: issuance and read-only guarantee evaluation."""

from coverage_ledger.db.constants import ACTION_CREATED, RECORD_WARRANTY
from coverage_ledger.db.repository import LedgerSession
from coverage_ledger.ledger.admin import load_state, require_admin
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode
from coverage_ledger.models.ledger import GuaranteeCheck, Warranty, warranty_from_row
from coverage_ledger.utils.sanitization import sanitize_brand
from coverage_ledger.valuation.price_oracle import PriceOracle


def load_warranty(session: LedgerSession, warranty_id: int) -> Warranty:
    row = session.get_warranty(warranty_id)
    if row is None:
        raise LedgerError(
            LedgerErrorCode.INVALID_WARRANTY, f"Warranty not found: {warranty_id}"
        )
    return warranty_from_row(row)


def create_warranty_impl(
    session: LedgerSession,
    instrument_id: int,
    brand: str,
    guarantee_percentage: int,
    start_date: int,
    duration_years: int,
    caller: str,
) -> int:
    state = require_admin(session, caller)
    if start_date < state.current_year or duration_years <= 0:
        raise LedgerError(
            LedgerErrorCode.INVALID_DATE,
            f"Invalid warranty term: start {start_date}, {duration_years} years "
            f"(current year {state.current_year})",
        )

    clean_brand = sanitize_brand(brand)
    warranty_id = session.insert_warranty(
        instrument_id=instrument_id,
        brand=clean_brand,
        guarantee_percentage=guarantee_percentage,
        start_date=start_date,
        duration_years=duration_years,
        owner=caller,
    )
    session.log_audit(
        RECORD_WARRANTY,
        warranty_id,
        ACTION_CREATED,
        caller,
        {
            "instrument_id": instrument_id,
            "brand": clean_brand,
            "guarantee_percentage": guarantee_percentage,
            "start_date": start_date,
            "duration_years": duration_years,
        },
    )
    return warranty_id


def evaluate_guarantee(initial_value: int, guarantee_percentage: int, current_value: int) -> GuaranteeCheck:
    """Compare a current valuation against floor(initial * pct / 100)."""
    guaranteed_value = (initial_value * guarantee_percentage) // 100
    if current_value < guaranteed_value:
        return GuaranteeCheck(
            has_guarantee=True,
            guaranteed_value=guaranteed_value,
            shortfall=guaranteed_value - current_value,
        )
    return GuaranteeCheck(has_guarantee=False, guaranteed_value=guaranteed_value, shortfall=0)


def load_unexpired_warranty(session: LedgerSession, warranty_id: int) -> Warranty:
    """Load a warranty that can still be checked against a valuation."""
    warranty = load_warranty(session, warranty_id)
    state = load_state(session)
    if not warranty.active or state.current_year > warranty.expiry:
        raise LedgerError(
            LedgerErrorCode.WARRANTY_EXPIRED,
            f"Warranty {warranty_id} expired in {warranty.expiry}",
        )
    return warranty


def check_warranty_guarantee_impl(
    warranty: Warranty, current_value: int, oracle: PriceOracle
) -> GuaranteeCheck:
    """Evaluate an already-loaded warranty; the oracle is consulted outside any transaction."""
    initial_value = oracle.get_initial_value(warranty.instrument_id, warranty.brand)
    return evaluate_guarantee(initial_value, warranty.guarantee_percentage, current_value)
