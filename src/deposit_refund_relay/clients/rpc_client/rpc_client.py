"""Chain JSON-RPC client: reads, log queries, gas estimation and raw transaction broadcast."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, cast

import structlog

from deposit_refund_relay.clients.rpc_client.schema import (
    BlockSchema,
    LogSchema,
    ReceiptSchema,
)
from deposit_refund_relay.exceptions import RpcResponseError

if TYPE_CHECKING:
    from deposit_refund_relay.clients.http import AsyncHttpClient
    from deposit_refund_relay.config import Settings

# Used when the node does not implement eth_maxPriorityFeePerGas
DEFAULT_PRIORITY_FEE_WEI = 1_500_000_000


def to_hex_quantity(value: int) -> str:
    """Encode a non-negative int as a JSON-RPC quantity (no leading zeros)."""
    if value < 0:
        raise ValueError(f"quantity must be non-negative: {value}")
    return hex(value)


def from_hex_quantity(value: str | None) -> int:
    """Decode a JSON-RPC quantity; None and '0x' read as 0.

    Raises:
        RpcResponseError: The node sent something that is not a hex quantity.
    """
    if value is None or value in ("0x", ""):
        return 0
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        raise RpcResponseError(f"Malformed quantity from node: {value!r}")
    try:
        return int(value, 16)
    except ValueError as e:
        raise RpcResponseError(f"Malformed quantity from node: {value!r}") from e


class RpcClient:
    """Client for Ethereum JSON-RPC over the shared AsyncHttpClient."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the RPC client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            settings: Configuration (uses settings.rpc.url).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._ids = itertools.count(1)

    def _rpc_url(self) -> str:
        return self._settings.rpc.url.rstrip("/")

    async def request(self, method: str, params: Sequence[Any]) -> Any:
        """Send one JSON-RPC request and return its result.

        Raises:
            RpcAPIError: Transport failure after retries.
            RpcResponseError: The node returned a JSON-RPC error object.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        response = await self._http.post(self._rpc_url(), json=payload)
        if not isinstance(response, dict):
            raise RpcResponseError(
                f"Unexpected RPC response type: {type(response).__name__}",
                method=method,
            )
        resp_dict = cast(dict[str, Any], response)
        if "error" in resp_dict and resp_dict["error"] is not None:
            err = resp_dict["error"]
            if isinstance(err, dict):
                err_d = cast(dict[str, Any], err)
                raise RpcResponseError(
                    f"RPC error: {err_d.get('message', err_d)}",
                    method=method,
                    code=err_d.get("code"),
                    data=err_d.get("data"),
                )
            raise RpcResponseError(f"RPC error: {err}", method=method)
        return resp_dict.get("result")

    async def eth_call(
        self,
        to: str,
        data: str,
        *,
        from_address: str | None = None,
        block: str = "latest",
    ) -> str:
        """Perform eth_call (read-only contract call).

        Args:
            to: Contract address (0x...).
            data: Hex-encoded calldata (with 0x prefix).
            from_address: Optional caller (needed when simulating state-changing calls).
            block: Block tag (default "latest").

        Returns:
            Hex-encoded result (e.g. "0x...").
        """
        call: dict[str, str] = {"to": to, "data": data}
        if from_address is not None:
            call["from"] = from_address
        result = await self.request("eth_call", [call, block])
        return str(result) if result is not None else "0x"

    async def get_block_number(self) -> int:
        """Return the current chain head."""
        return from_hex_quantity(await self.request("eth_blockNumber", []))

    async def get_block(self, block_number: int) -> BlockSchema:
        """Return the block header for a number.

        Raises:
            RpcResponseError: If the node does not know the block.
        """
        block = await self.request(
            "eth_getBlockByNumber", [to_hex_quantity(block_number), False]
        )
        if not isinstance(block, dict):
            raise RpcResponseError(
                f"Block {block_number} not found", method="eth_getBlockByNumber"
            )
        return cast(BlockSchema, block)

    async def get_block_timestamp(self, block_number: int) -> int:
        """Return the unix timestamp of a block."""
        block = await self.get_block(block_number)
        return from_hex_quantity(block.get("timestamp"))

    async def get_logs(
        self,
        *,
        address: str,
        topics: Sequence[str | None],
        from_block: int,
        to_block: int,
    ) -> list[LogSchema]:
        """Return logs emitted by address in the closed range [from_block, to_block]."""
        logs = await self.request(
            "eth_getLogs",
            [
                {
                    "address": address,
                    "topics": list(topics),
                    "fromBlock": to_hex_quantity(from_block),
                    "toBlock": to_hex_quantity(to_block),
                }
            ],
        )
        if not isinstance(logs, list):
            raise RpcResponseError("eth_getLogs returned a non-list result", method="eth_getLogs")
        return cast(list[LogSchema], logs)

    async def get_code(self, address: str, block: str = "latest") -> str:
        """Return deployed bytecode at address ('0x' when none)."""
        result = await self.request("eth_getCode", [address, block])
        return str(result) if result is not None else "0x"

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """Return the account nonce (pending by default, for signing new transactions)."""
        return from_hex_quantity(
            await self.request("eth_getTransactionCount", [address, block])
        )

    async def estimate_gas(
        self,
        *,
        from_address: str,
        to: str,
        data: str,
        value: int = 0,
    ) -> int:
        """Estimate gas for a transaction. A revert surfaces as RpcResponseError."""
        call = {"from": from_address, "to": to, "data": data, "value": to_hex_quantity(value)}
        return from_hex_quantity(await self.request("eth_estimateGas", [call]))

    async def max_priority_fee_per_gas(self) -> int:
        """Return the suggested priority fee, falling back to a fixed tip."""
        try:
            return from_hex_quantity(await self.request("eth_maxPriorityFeePerGas", []))
        except RpcResponseError as e:
            self._logger.debug(
                "rpc_priority_fee_unavailable",
                error_message=str(e),
                fallback_wei=DEFAULT_PRIORITY_FEE_WEI,
            )
            return DEFAULT_PRIORITY_FEE_WEI

    async def get_base_fee(self) -> int:
        """Return baseFeePerGas of the latest block (0 on pre-London chains)."""
        block = await self.request("eth_getBlockByNumber", ["latest", False])
        if not isinstance(block, dict):
            return 0
        return from_hex_quantity(cast(BlockSchema, block).get("baseFeePerGas"))

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Broadcast a signed transaction and return its hash."""
        tx_hash = await self.request("eth_sendRawTransaction", ["0x" + raw_tx.hex()])
        self._logger.debug("rpc_raw_transaction_sent", tx_hash=tx_hash)
        return str(tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> ReceiptSchema | None:
        """Return the receipt, or None while the transaction is pending."""
        receipt = await self.request("eth_getTransactionReceipt", [tx_hash])
        if receipt is None:
            return None
        return cast(ReceiptSchema, receipt)
