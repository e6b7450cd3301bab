"""Persistence layer (repositories)."""

from deposit_refund_relay.persistence.repositories import (
    IAccountSessionRepository,
    InMemoryAccountSessionRepository,
)

__all__ = [
    "IAccountSessionRepository",
    "InMemoryAccountSessionRepository",
]
