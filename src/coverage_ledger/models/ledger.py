"""Pydantic models for ledger records and operation payloads."""

from typing import Any

from pydantic import BaseModel, Field, field_serializer


class Policy(BaseModel):
    """Insurance policy covering one instrument."""

    id: int = Field(..., description="Policy ID (starts at 1)")
    instrument_id: int = Field(..., description="Insured instrument ID")
    brand: str = Field(..., description="Instrument brand")
    coverage_amount: int = Field(..., description="Maximum claimable amount")
    premium_paid: int = Field(default=0, description="Premium accepted, 0 until paid")
    start_date: int = Field(..., description="First covered year")
    end_date: int = Field(..., description="Last covered year (start + duration)")
    owner: str = Field(..., description="Principal that created the policy")
    active: bool = Field(default=False, description="True once the premium is paid")

    @property
    def duration_years(self) -> int:
        return self.end_date - self.start_date


class Claim(BaseModel):
    """Payout request against a policy."""

    id: int = Field(..., description="Claim ID (starts at 1)")
    policy_id: int = Field(..., description="Policy the claim is filed against")
    claim_amount: int = Field(..., description="Requested payout")
    claim_date: int = Field(..., description="Ledger year at filing")
    reason: str = Field(..., description="Claimant's reason")
    status: str = Field(default="pending", description="Free-form status text")
    evidence_hash: bytes = Field(..., description="32-byte evidence digest")
    approved: bool = Field(default=False, description="Adjudication outcome")

    @field_serializer("evidence_hash")
    def _hash_hex(self, value: bytes) -> str:
        return value.hex()


class Warranty(BaseModel):
    """Value guarantee on an instrument, evaluated against the price oracle."""

    id: int = Field(..., description="Warranty ID (starts at 1)")
    instrument_id: int = Field(..., description="Guaranteed instrument ID")
    brand: str = Field(..., description="Instrument brand")
    guarantee_percentage: int = Field(..., description="Guaranteed share of initial value (0-100)")
    start_date: int = Field(..., description="First guaranteed year")
    duration_years: int = Field(..., description="Guarantee length in years")
    owner: str = Field(..., description="Principal that issued the warranty")
    active: bool = Field(default=True, description="Always true at creation")

    @property
    def expiry(self) -> int:
        return self.start_date + self.duration_years


class LedgerState(BaseModel):
    """Ledger-wide state."""

    current_year: int
    insurance_fund: int
    admin: str


class PolicyQuote(BaseModel):
    """Result of policy creation: the new ID and the premium that activates it."""

    policy_id: int
    premium_required: int


class GuaranteeCheck(BaseModel):
    """Result of evaluating a warranty against a current valuation."""

    has_guarantee: bool
    guaranteed_value: int
    shortfall: int


class FundMovement(BaseModel):
    """Journal entry for a change to the insurance fund."""

    id: int
    kind: str
    amount: int
    policy_id: int | None = None
    claim_id: int | None = None
    balance_after: int
    created_at: str | None = None


def policy_from_row(row: dict[str, Any]) -> Policy:
    return Policy(**{k: row[k] for k in Policy.model_fields})


def claim_from_row(row: dict[str, Any]) -> Claim:
    return Claim(**{k: row[k] for k in Claim.model_fields})


def warranty_from_row(row: dict[str, Any]) -> Warranty:
    return Warranty(**{k: row[k] for k in Warranty.model_fields})
