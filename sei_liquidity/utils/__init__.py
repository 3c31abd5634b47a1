"""Encoding and math helpers for on-chain data."""
