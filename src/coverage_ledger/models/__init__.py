"""Pydantic models for ledger records and results."""

from coverage_ledger.models.errors import (
    LedgerError,
    LedgerErrorCode,
    OperationResult,
)
from coverage_ledger.models.ledger import (
    Claim,
    FundMovement,
    GuaranteeCheck,
    LedgerState,
    Policy,
    PolicyQuote,
    Warranty,
)

__all__ = [
    "Claim",
    "FundMovement",
    "GuaranteeCheck",
    "LedgerError",
    "LedgerErrorCode",
    "LedgerState",
    "OperationResult",
    "Policy",
    "PolicyQuote",
    "Warranty",
]
