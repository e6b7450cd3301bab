# -*- coding: utf-8 -*-
"""Abstract interface for account session storage (the session registry)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from deposit_refund_relay.models.account_session import AccountSession


class IAccountSessionRepository(ABC):
    """Interface for the registry of managed accounts, keyed by case-folded address."""

    @abstractmethod
    async def upsert(self, account_address: str, credential_id: str) -> AccountSession:
        """Create the session if absent, else rebind its credential and return it.

        Deposits, cursor and watcher of an existing session are preserved.
        """
        ...

    @abstractmethod
    async def get(self, account_address: str) -> Optional[AccountSession]:
        """Return the session for the address (any casing), or None."""
        ...

    @abstractmethod
    async def list_all(self) -> list[AccountSession]:
        """Return every session, oldest first."""
        ...
