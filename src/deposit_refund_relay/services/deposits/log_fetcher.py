"""Range-bounded retrieval of token transfers into an account.

Many RPC providers cap the block span of eth_getLogs; the fetcher walks a closed
range in contiguous sub-ranges and concatenates the results in order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

import structlog

from deposit_refund_relay.contracts.abi import (
    TRANSFER_TOPIC,
    TransferLog,
    decode_transfer_log,
    topic_for_address,
)
from deposit_refund_relay.utils.validation import mask_address

if TYPE_CHECKING:
    from deposit_refund_relay.clients.rpc_client import LogSchema, RpcClient
    from deposit_refund_relay.config import Settings


def iter_block_ranges(from_block: int, to_block: int, max_span: int) -> Iterator[tuple[int, int]]:
    """Yield consecutive closed ranges of at most max_span blocks covering [from_block, to_block].

    Each range starts at the previous end + 1. Nothing is yielded when from_block > to_block.
    """
    if max_span < 1:
        raise ValueError(f"max_span must be >= 1, got {max_span}")
    cursor = from_block
    while cursor <= to_block:
        end = min(cursor + max_span - 1, to_block)
        yield cursor, end
        cursor = end + 1


class ChunkedLogFetcher:
    """Fetches ERC-20 Transfer logs addressed to an account over arbitrary block ranges."""

    def __init__(
        self,
        rpc_client: RpcClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            rpc_client: JSON-RPC client (injected).
            settings: Uses chain.token_address and deposits.max_log_block_span.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._rpc = rpc_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def fetch_raw_logs(
        self,
        account_address: str,
        from_block: int,
        to_block: int,
    ) -> list[LogSchema]:
        """Return raw Transfer logs to account_address in [from_block, to_block], in chain order.

        Any failing sub-range fails the whole call; partial results are discarded.
        """
        token = self._settings.chain.token_address
        topics = [TRANSFER_TOPIC, None, topic_for_address(account_address)]
        logs: list[LogSchema] = []
        chunks = 0
        for start, end in iter_block_ranges(
            from_block, to_block, self._settings.deposits.max_log_block_span
        ):
            chunk = await self._rpc.get_logs(
                address=token,
                topics=topics,
                from_block=start,
                to_block=end,
            )
            logs.extend(chunk)
            chunks += 1

        self._logger.debug(
            "transfer_logs_fetched",
            account_masked=mask_address(account_address),
            from_block=from_block,
            to_block=to_block,
            chunks=chunks,
            logs=len(logs),
        )
        return logs

    async def fetch_transfers(
        self,
        account_address: str,
        from_block: int,
        to_block: int,
    ) -> list[TransferLog]:
        """Fetch and decode transfers into account_address; malformed logs are skipped."""
        raw_logs = await self.fetch_raw_logs(account_address, from_block, to_block)
        transfers: list[TransferLog] = []
        for log in raw_logs:
            transfer = decode_transfer_log(log)
            if transfer is None:
                self._logger.debug(
                    "transfer_log_skipped",
                    tx_hash=log.get("transactionHash"),
                    log_index=log.get("logIndex"),
                    removed=log.get("removed", False),
                )
                continue
            transfers.append(transfer)
        return transfers
