"""Coverage ledger for instrument insurance policies, claims and value warranties."""

from coverage_ledger.ledger import CoverageLedger
from coverage_ledger.models import LedgerErrorCode, OperationResult

__version__ = "0.1.0"

__all__ = [
    "CoverageLedger",
    "LedgerErrorCode",
    "OperationResult",
]
