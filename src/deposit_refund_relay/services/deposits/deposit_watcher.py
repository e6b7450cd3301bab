"""Live deposit watcher: backfill, then periodic polling per account session."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from deposit_refund_relay.models.account_session import WatcherHandle, WatcherState
from deposit_refund_relay.utils.validation import mask_address

if TYPE_CHECKING:
    from deposit_refund_relay.clients.rpc_client import RpcClient
    from deposit_refund_relay.config import Settings
    from deposit_refund_relay.models.account_session import AccountSession
    from deposit_refund_relay.models.deposit_record import DepositRecord
    from deposit_refund_relay.services.deposits.deposit_ledger import DepositLedgerService
    from deposit_refund_relay.services.deposits.log_fetcher import ChunkedLogFetcher


class DepositWatcherService:
    """Keeps each session's ledger current.

    A session goes idle -> backfilling -> live. A failed poll moves it to error and
    drops the polling task; nothing reconnects until the next ensure_watching() call,
    which resumes from last_synced_block + 1.
    """

    def __init__(
        self,
        fetcher: ChunkedLogFetcher,
        ledger: DepositLedgerService,
        rpc_client: RpcClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the watcher service.

        Args:
            fetcher: Chunked log fetcher (injected).
            ledger: Deposit ledger service (injected).
            rpc_client: JSON-RPC client, used for the chain head (injected).
            settings: Uses deposits.lookback_blocks and deposits.poll_seconds.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._fetcher = fetcher
        self._ledger = ledger
        self._rpc = rpc_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._sessions: dict[str, AccountSession] = {}

    async def ensure_watching(self, session: AccountSession) -> list[DepositRecord]:
        """Start the session's watcher, or catch it up to head if it is already live.

        Returns:
            Records merged by this call.

        Raises:
            Any fetch failure, after the session has been moved to the error state.
        """
        self._sessions[session.key] = session
        async with session.sync_lock:
            if session.is_watching:
                try:
                    return await self.sync_once(session)
                except Exception:
                    self._set_state(session, WatcherState.ERROR)
                    raise

            # A finished task (crashed or cancelled) is not a live watcher.
            if session.watcher is not None:
                session.detach_watcher(session.watcher_state)

            self._set_state(session, WatcherState.BACKFILLING)
            try:
                merged = await self.sync_once(session)
            except Exception:
                self._set_state(session, WatcherState.ERROR)
                raise

            task = asyncio.create_task(
                self._poll_loop(session),
                name=f"deposit-watcher-{session.key}",
            )
            session.watcher = WatcherHandle(task)
            self._set_state(session, WatcherState.LIVE)
            return merged

    async def sync_once(self, session: AccountSession) -> list[DepositRecord]:
        """Fetch and merge everything between the cursor and the current head.

        The cursor starts lookback_blocks before head when the session has never synced.
        It moves to head only once the whole range is merged; on failure it is unchanged.
        Callers hold session.sync_lock.
        """
        head = await self._rpc.get_block_number()
        if session.last_synced_block is None:
            from_block = max(0, head - self._settings.deposits.lookback_blocks)
        else:
            from_block = session.last_synced_block + 1
        if from_block > head:
            return []

        transfers = await self._fetcher.fetch_transfers(session.account_address, from_block, head)
        merged = await self._ledger.ingest(session, transfers)
        session.advance_cursor(head)

        self._logger.debug(
            "deposit_watcher_synced",
            account_masked=mask_address(session.account_address),
            from_block=from_block,
            to_block=head,
            transfers=len(transfers),
            merged=len(merged),
        )
        return merged

    async def _poll_loop(self, session: AccountSession) -> None:
        poll_seconds = self._settings.deposits.poll_seconds
        try:
            while True:
                await asyncio.sleep(poll_seconds)
                async with session.sync_lock:
                    await self.sync_once(session)
        except asyncio.CancelledError:
            raise
        except Exception:
            self._logger.exception(
                "deposit_watcher_poll_failed",
                account_masked=mask_address(session.account_address),
                last_synced_block=session.last_synced_block,
            )
            if session.watcher is not None and session.watcher.task is asyncio.current_task():
                session.watcher = None
            self._set_state(session, WatcherState.ERROR)

    async def stop(self, session: AccountSession) -> None:
        """Cancel the session's polling task and wait for it. Merged deposits are kept."""
        handle = session.watcher
        session.detach_watcher(WatcherState.IDLE)
        if handle is None:
            return
        try:
            await handle.task
        except asyncio.CancelledError:
            pass
        self._logger.info(
            "deposit_watcher_stopped",
            account_masked=mask_address(session.account_address),
        )

    async def stop_all(self) -> None:
        """Stop every watcher started by this service."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await self.stop(session)

    def _set_state(self, session: AccountSession, state: WatcherState) -> None:
        if session.watcher_state == state:
            return
        previous = session.watcher_state
        if state == WatcherState.ERROR:
            session.detach_watcher(state)
        else:
            session.watcher_state = state
        self._logger.info(
            "deposit_watcher_state_changed",
            account_masked=mask_address(session.account_address),
            previous_state=previous.value,
            state=state.value,
            last_synced_block=session.last_synced_block,
        )
