"""Ledger operations: policy, claims, warranty and admin lifecycles."""

from coverage_ledger.ledger.policies import compute_premium
from coverage_ledger.ledger.service import CoverageLedger
from coverage_ledger.ledger.warranties import evaluate_guarantee

__all__ = [
    "CoverageLedger",
    "compute_premium",
    "evaluate_guarantee",
]
