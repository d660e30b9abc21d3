"""Centralized configuration from environment variables with defaults."""

import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _str(key: str, default: str) -> str:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# ---------------------------------------------------------------------------
# Premium arithmetic (fixed, policy-wide)
# ---------------------------------------------------------------------------

PREMIUM_RATE_PERCENT = 2
MINIMUM_PREMIUM = 50
EVIDENCE_HASH_SIZE = 32


# ---------------------------------------------------------------------------
# Ledger bootstrap
# ---------------------------------------------------------------------------

def get_ledger_config() -> dict[str, Any]:
    """Initial ledger state and store limits. Read on every call so tests can patch env."""
    return {
        "initial_year": _int("LEDGER_INITIAL_YEAR", 2023),
        "initial_fund": _int("LEDGER_INITIAL_FUND", 1_000_000),
        "max_records": _int("LEDGER_MAX_RECORDS", 1000),
        "admin": _str("LEDGER_ADMIN", "SP1TESTOWNER"),
    }


# ---------------------------------------------------------------------------
# Price oracle
# ---------------------------------------------------------------------------

def get_oracle_config() -> dict[str, Any]:
    """Price oracle defaults and retry policy."""
    return {
        "default_initial_value": _int("ORACLE_DEFAULT_INITIAL_VALUE", 100_000),
        "max_attempts": _int("ORACLE_MAX_ATTEMPTS", 3),
    }
