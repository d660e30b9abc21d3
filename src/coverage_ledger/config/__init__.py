"""Ledger configuration."""
