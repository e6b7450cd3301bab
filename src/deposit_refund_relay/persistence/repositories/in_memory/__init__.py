"""In-memory repository implementations."""

from deposit_refund_relay.persistence.repositories.in_memory.account_session_repository import (
    InMemoryAccountSessionRepository,
)

__all__ = ["InMemoryAccountSessionRepository"]
