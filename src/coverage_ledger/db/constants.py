"""Record, audit and fund-movement constants.

Claim status is caller-supplied free text once adjudicated; only the initial
status is fixed by the ledger.
"""

STATUS_PENDING = "pending"

# Record types (audit log and history queries)
RECORD_POLICY = "policy"
RECORD_CLAIM = "claim"
RECORD_WARRANTY = "warranty"
RECORD_LEDGER = "ledger"

RECORD_TYPES = (
    RECORD_POLICY,
    RECORD_CLAIM,
    RECORD_WARRANTY,
    RECORD_LEDGER,
)

# Audit actions
ACTION_CREATED = "created"
ACTION_PREMIUM_PAID = "premium_paid"
ACTION_ADJUDICATED = "adjudicated"
ACTION_YEAR_SET = "year_set"
ACTION_ADMIN_TRANSFERRED = "admin_transferred"

# Fund movement kinds
MOVEMENT_PREMIUM = "premium"
MOVEMENT_PAYOUT = "payout"

# Collection table per record type (capacity checks)
RECORD_TABLES = {
    RECORD_POLICY: "policies",
    RECORD_CLAIM: "claims",
    RECORD_WARRANTY: "warranties",
}
