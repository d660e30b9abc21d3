"""Ledger state, privileged-principal checks and admin operations."""

from coverage_ledger.db.constants import (
    ACTION_ADMIN_TRANSFERRED,
    ACTION_YEAR_SET,
    RECORD_LEDGER,
)
from coverage_ledger.db.repository import LedgerSession
from coverage_ledger.models.errors import LedgerError, LedgerErrorCode
from coverage_ledger.models.ledger import LedgerState


def load_state(session: LedgerSession) -> LedgerState:
    row = session.get_state()
    if row is None:
        raise RuntimeError("Ledger state is not initialized")
    return LedgerState(**row)


def require_admin(session: LedgerSession, caller: str) -> LedgerState:
    """Return the ledger state if ``caller`` is the privileged principal, else reject."""
    state = load_state(session)
    if caller != state.admin:
        raise LedgerError(
            LedgerErrorCode.UNAUTHORIZED, f"{caller} is not the ledger administrator"
        )
    return state


def set_current_year_impl(session: LedgerSession, year: int, caller: str) -> bool:
    state = require_admin(session, caller)
    # No monotonicity check: moving time backward is allowed for simulation.
    session.set_current_year(year)
    session.log_audit(
        RECORD_LEDGER,
        None,
        ACTION_YEAR_SET,
        caller,
        {"old_year": state.current_year, "new_year": year},
    )
    return True


def transfer_admin_impl(session: LedgerSession, new_admin: str, caller: str) -> bool:
    require_admin(session, caller)
    new_admin = (new_admin or "").strip()
    if not new_admin:
        raise LedgerError(LedgerErrorCode.UNAUTHORIZED, "New administrator must be non-empty")
    session.set_admin(new_admin)
    session.log_audit(
        RECORD_LEDGER,
        None,
        ACTION_ADMIN_TRANSFERRED,
        caller,
        {"old_admin": caller, "new_admin": new_admin},
    )
    return True
