"""Deduplication key for deposits."""

from __future__ import annotations


def deposit_key(tx_hash: str, log_index: int) -> tuple[str, int]:
    """Return the identity of a transfer event: (lowercased tx hash, log index).

    A single transaction can emit several transfers to the same account, so the
    transaction hash alone is not unique.
    """
    return (tx_hash.strip().lower(), int(log_index))
