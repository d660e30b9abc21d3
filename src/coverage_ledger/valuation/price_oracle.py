"""Price oracle collaborators supplying an instrument's initial value.

Supports:
- FixedPriceOracle: a single reference value for every instrument (default)
- CatalogPriceOracle: per-instrument or per-brand values from a JSON catalog
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from coverage_ledger.config.settings import get_oracle_config
from coverage_ledger.utils.retry import with_oracle_retry
from coverage_ledger.valuation.data_loader import load_instrument_catalog

logger = logging.getLogger(__name__)


def _as_value(raw) -> Optional[int]:
    """Catalog values must be non-negative integers (bools excluded)."""
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        return None
    return raw


class PriceOracle(ABC):
    """Abstract base class for initial-value lookups."""

    @abstractmethod
    def get_initial_value(self, instrument_id: int, brand: str) -> int:
        """Return the instrument's initial value as a non-negative integer."""


class FixedPriceOracle(PriceOracle):
    """Returns the same reference value for every instrument."""

    def __init__(self, value: Optional[int] = None):
        if value is None:
            value = get_oracle_config()["default_initial_value"]
        self.value = int(value)

    def get_initial_value(self, instrument_id: int, brand: str) -> int:
        return self.value


class CatalogPriceOracle(PriceOracle):
    """Looks up values by instrument ID, then by brand, then falls back to a default.

    The catalog is read lazily on first lookup; transient read failures are retried.
    """

    def __init__(self, path: Optional[Path] = None, default_value: Optional[int] = None):
        config = get_oracle_config()
        self._path = path
        self._default = int(
            default_value if default_value is not None else config["default_initial_value"]
        )
        self._max_attempts = config["max_attempts"]
        self._catalog: Optional[dict] = None

    def _load(self) -> dict:
        if self._catalog is None:
            load = with_oracle_retry(
                max_attempts=self._max_attempts, min_wait=0.1, max_wait=1.0
            )(load_instrument_catalog)
            self._catalog = load(self._path)
        return self._catalog

    def reload(self) -> None:
        """Drop the cached catalog so the next lookup re-reads it."""
        self._catalog = None

    def get_initial_value(self, instrument_id: int, brand: str) -> int:
        catalog = self._load()
        entry = catalog.get("instruments", {}).get(str(instrument_id))
        if isinstance(entry, dict):
            entry_brand = entry.get("brand")
            if entry_brand is None or str(entry_brand).lower() == (brand or "").lower():
                value = _as_value(entry.get("initial_value"))
                if value is not None:
                    return value
                logger.warning(
                    "Catalog entry for instrument %s has no usable initial_value: %r",
                    instrument_id,
                    entry.get("initial_value"),
                )
            else:
                logger.warning(
                    "Catalog brand mismatch for instrument %s: %s != %s",
                    instrument_id,
                    entry_brand,
                    brand,
                )
        elif entry is not None:
            logger.warning("Catalog entry for instrument %s is not an object", instrument_id)

        brands = {str(k).lower(): v for k, v in catalog.get("brands", {}).items()}
        if brand and brand.lower() in brands:
            value = _as_value(brands[brand.lower()])
            if value is not None:
                return value
            logger.warning("Catalog value for brand %s is not usable: %r", brand, brands[brand.lower()])
        return self._default



def get_price_oracle(kind: str = "fixed", **kwargs) -> PriceOracle:
    """Factory function to get a price oracle ("fixed" or "catalog")."""
    if kind == "fixed":
        return FixedPriceOracle(**kwargs)
    elif kind == "catalog":
        return CatalogPriceOracle(**kwargs)
    else:
        raise ValueError(f"Unknown price oracle: {kind}")
