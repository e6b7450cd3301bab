"""AccountSession: per managed account state (credential binding, deposit ledger, watcher).

One session per account address (case-insensitive). Sessions live in memory only
and are rebuilt from chain logs after a restart.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from deposit_refund_relay.models.deposit_record import DepositRecord
from deposit_refund_relay.utils.dedupe import deposit_key
from deposit_refund_relay.utils.validation import normalize_address, same_address


class WatcherState(str, Enum):
    """Deposit watcher lifecycle state."""

    IDLE = "idle"
    """Not started yet."""
    BACKFILLING = "backfilling"
    """Fetching historical logs before going live."""
    LIVE = "live"
    """Polling task running."""
    ERROR = "error"
    """Last fetch failed; restarted on the next read of the session."""


class WatcherHandle:
    """Cancelable handle for a session's live polling task."""

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def task(self) -> asyncio.Task[None]:
        return self._task

    @property
    def running(self) -> bool:
        return not self._task.done()

    def stop(self) -> None:
        """Cancel the polling task. Idempotent; merged deposits are kept."""
        if not self._task.done():
            self._task.cancel()


@dataclass(slots=True, eq=False)
class AccountSession:
    """State owned by the relay for one managed account."""

    account_address: str
    """Account address as last supplied (original casing)."""
    credential_id: str
    """Credential bound to the account; last writer wins."""
    deposits: list[DepositRecord] = field(default_factory=list)
    """Ledger, newest first."""
    watcher: WatcherHandle | None = None
    watcher_state: WatcherState = WatcherState.IDLE
    last_synced_block: int | None = None
    """Highest block fully merged into the ledger. Never decreases."""
    sync_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    """Serializes backfill, catch-up and poll ticks of this session."""

    @property
    def key(self) -> str:
        return normalize_address(self.account_address)

    @property
    def is_watching(self) -> bool:
        return (
            self.watcher_state == WatcherState.LIVE
            and self.watcher is not None
            and self.watcher.running
        )

    def bind_credential(self, credential_id: str, account_address: str | None = None) -> None:
        """Rebind the credential (and refresh address casing) without touching deposits."""
        self.credential_id = credential_id
        if account_address is not None:
            self.account_address = account_address

    def advance_cursor(self, block_number: int) -> None:
        """Move last_synced_block forward; lower values are ignored."""
        if self.last_synced_block is None or block_number > self.last_synced_block:
            self.last_synced_block = block_number

    def detach_watcher(self, state: WatcherState) -> None:
        """Stop and forget the live task, leaving the session in the given state."""
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
        self.watcher_state = state

    def find_deposit(self, tx_hash: str, log_index: int) -> DepositRecord | None:
        """Return the ledger record with this identity, or None."""
        key = deposit_key(tx_hash, log_index)
        for record in self.deposits:
            if record.key == key:
                return record
        return None

    def match_deposit(
        self,
        *,
        tx_hash: str,
        log_index: int,
        sender: str,
        amount: int,
    ) -> DepositRecord | None:
        """Return the record matching all four claimed fields exactly, or None."""
        record = self.find_deposit(tx_hash, log_index)
        if record is None:
            return None
        if not same_address(record.sender, sender) or record.amount != amount:
            return None
        return record
