"""Deposit ledger: merges observed transfers into a session's bounded, newest-first ledger."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import structlog

from deposit_refund_relay.models.deposit_record import DepositRecord
from deposit_refund_relay.utils.dedupe import deposit_key
from deposit_refund_relay.utils.validation import mask_address

if TYPE_CHECKING:
    from deposit_refund_relay.clients.rpc_client import RpcClient
    from deposit_refund_relay.config import Settings
    from deposit_refund_relay.contracts.abi import TransferLog
    from deposit_refund_relay.models.account_session import AccountSession


class DepositLedgerService:
    """Owns every mutation of AccountSession.deposits.

    record() and mark_refunded() contain no await, so each runs to completion
    before any other coroutine touches the same ledger.
    """

    def __init__(
        self,
        rpc_client: RpcClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the ledger service.

        Args:
            rpc_client: JSON-RPC client, used for block timestamps (injected).
            settings: Uses deposits.min_deposit and deposits.max_retained.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._rpc = rpc_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def min_deposit(self) -> int:
        return self._settings.deposits.min_deposit

    def record(self, session: AccountSession, record: DepositRecord) -> bool:
        """Insert record at the head of the ledger unless its (tx_hash, log_index) is known.

        When the ledger grows past deposits.max_retained, the oldest entry (the tail)
        is evicted.

        Returns:
            True if inserted, False if it was a duplicate.
        """
        if session.find_deposit(record.tx_hash, record.log_index) is not None:
            return False

        session.deposits.insert(0, record)
        max_retained = self._settings.deposits.max_retained
        while len(session.deposits) > max_retained:
            evicted = session.deposits.pop()
            self._logger.info(
                "deposit_evicted",
                account_masked=mask_address(session.account_address),
                tx_hash=evicted.tx_hash,
                log_index=evicted.log_index,
                ready=evicted.ready,
                refunded=evicted.refunded,
            )
        return True

    async def ingest(
        self,
        session: AccountSession,
        transfers: Iterable[TransferLog],
    ) -> list[DepositRecord]:
        """Turn fetched transfers into records and merge them in (block, log index) order.

        Timestamps are looked up once per block for the batch. All lookups finish
        before the first record is merged, so a lookup failure leaves the ledger as it was.

        Returns:
            The records that were new to the ledger.
        """
        ordered = sorted(transfers, key=lambda t: (t.block_number, t.log_index))
        if not ordered:
            return []

        timestamps: dict[int, int] = {}
        for transfer in ordered:
            if transfer.block_number not in timestamps:
                timestamps[transfer.block_number] = await self._rpc.get_block_timestamp(
                    transfer.block_number
                )

        inserted: list[DepositRecord] = []
        for transfer in ordered:
            record = DepositRecord.create(
                sender=transfer.sender,
                amount=transfer.amount,
                tx_hash=transfer.tx_hash,
                log_index=transfer.log_index,
                block_number=transfer.block_number,
                block_timestamp=timestamps[transfer.block_number],
                min_deposit=self.min_deposit,
            )
            if self.record(session, record):
                inserted.append(record)
                self._logger.info(
                    "deposit_recorded",
                    account_masked=mask_address(session.account_address),
                    sender_masked=mask_address(record.sender),
                    amount=record.amount,
                    tx_hash=record.tx_hash,
                    log_index=record.log_index,
                    block_number=record.block_number,
                    ready=record.ready,
                )
        return inserted

    def mark_refunded(
        self,
        session: AccountSession,
        tx_hash: str,
        log_index: int,
        refund_tx_hash: str,
    ) -> DepositRecord | None:
        """Flip the record to refunded with its settlement hash.

        A record that is already refunded keeps its original settlement hash.

        Returns:
            The updated record, or None if it is no longer in the ledger or was
            already refunded.
        """
        key = deposit_key(tx_hash, log_index)
        for position, record in enumerate(session.deposits):
            if record.key != key:
                continue
            if record.refunded:
                self._logger.warning(
                    "deposit_refund_already_marked",
                    tx_hash=record.tx_hash,
                    log_index=record.log_index,
                    refund_tx_hash=record.refund_tx_hash,
                    ignored_refund_tx_hash=refund_tx_hash,
                )
                return None
            updated = record.with_refunded(refund_tx_hash)
            session.deposits[position] = updated
            return updated

        self._logger.warning(
            "deposit_refund_record_missing",
            account_masked=mask_address(session.account_address),
            tx_hash=tx_hash,
            log_index=log_index,
            refund_tx_hash=refund_tx_hash,
        )
        return None
