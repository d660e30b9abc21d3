"""Closed error enumeration and the typed result returned by every ledger operation."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class LedgerErrorCode(str, Enum):
    """Every way a ledger operation can be rejected."""

    UNAUTHORIZED = "Unauthorized"
    INVALID_POLICY = "InvalidPolicy"
    INSUFFICIENT_PREMIUM = "InsufficientPremium"
    POLICY_EXPIRED = "PolicyExpired"
    INVALID_CLAIM = "InvalidClaim"
    ALREADY_CLAIMED = "AlreadyClaimed"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    INVALID_WARRANTY = "InvalidWarranty"
    WARRANTY_EXPIRED = "WarrantyExpired"
    INVALID_DATE = "InvalidDate"
    MINIMUM_PREMIUM_NOT_MET = "MinimumPremiumNotMet"
    CAPACITY_EXCEEDED = "CapacityExceeded"


class LedgerError(Exception):
    """Raised inside an operation to reject it; the transaction is rolled back."""

    def __init__(self, code: LedgerErrorCode, message: str = ""):
        self.code = code
        self.message = message or code.value
        super().__init__(f"{code.value}: {self.message}")


class OperationResult(BaseModel):
    """Outcome of a ledger operation: either a value or a rejection code."""

    ok: bool = Field(..., description="True when the operation committed")
    value: Any = Field(default=None, description="Operation return value on success")
    error: Optional[LedgerErrorCode] = Field(
        default=None, description="Rejection code on failure"
    )
    message: Optional[str] = Field(default=None, description="Human-readable detail")

    @classmethod
    def success(cls, value: Any) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc: LedgerError) -> "OperationResult":
        return cls(ok=False, error=exc.code, message=exc.message)

    def unwrap(self) -> Any:
        """Return the value, or raise the rejection as a LedgerError."""
        if not self.ok:
            raise LedgerError(self.error, self.message or "")
        return self.value
