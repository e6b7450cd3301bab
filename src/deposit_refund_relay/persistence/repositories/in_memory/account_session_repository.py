"""In-memory session registry (keyed by case-folded account address)."""

from __future__ import annotations

from deposit_refund_relay.models.account_session import AccountSession
from deposit_refund_relay.persistence.repositories.interfaces.account_session_repository import (
    IAccountSessionRepository,
)
from deposit_refund_relay.utils.validation import normalize_address


class InMemoryAccountSessionRepository(IAccountSessionRepository):
    """In-memory implementation of IAccountSessionRepository.

    Methods never await between reading and writing the store, so on a single
    event loop every upsert is atomic with respect to concurrent lookups.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._store: dict[str, AccountSession] = {}

    async def upsert(self, account_address: str, credential_id: str) -> AccountSession:
        """Create the session if absent, else rebind its credential and return it."""
        key = normalize_address(account_address)
        existing = self._store.get(key)
        if existing is not None:
            existing.bind_credential(credential_id, account_address.strip())
            return existing
        session = AccountSession(
            account_address=account_address.strip(),
            credential_id=credential_id,
        )
        self._store[key] = session
        return session

    async def get(self, account_address: str) -> AccountSession | None:
        """Return the session for the address (any casing), or None."""
        try:
            key = normalize_address(account_address)
        except ValueError:
            return None
        return self._store.get(key)

    async def list_all(self) -> list[AccountSession]:
        """Return every session in registration order."""
        return list(self._store.values())

    def __len__(self) -> int:
        return len(self._store)
