"""Instrument valuation collaborators."""

from coverage_ledger.valuation.price_oracle import (
    CatalogPriceOracle,
    FixedPriceOracle,
    PriceOracle,
    get_price_oracle,
)

__all__ = [
    "CatalogPriceOracle",
    "FixedPriceOracle",
    "PriceOracle",
    "get_price_oracle",
]
