# -*- coding: utf-8 -*-
"""Transaction submission service: simulate, sign, broadcast and confirm relayer transactions."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from eth_account import Account
from eth_utils import to_checksum_address

from deposit_refund_relay.clients.rpc_client import from_hex_quantity
from deposit_refund_relay.contracts.abi import decode_user_operation_events, encode_handle_ops
from deposit_refund_relay.exceptions import (
    AbiDecodeError,
    MissingRequiredConfigError,
    ReceiptTimeoutError,
    RpcAPIError,
    RpcResponseError,
)
from deposit_refund_relay.services.submission.dto import (
    PreparedTransaction,
    SubmissionResult,
    SubmissionStatus,
)
from deposit_refund_relay.utils.validation import mask_address, same_address

if TYPE_CHECKING:
    from deposit_refund_relay.clients.rpc_client import ReceiptSchema, RpcClient
    from deposit_refund_relay.config import Settings
    from deposit_refund_relay.models.user_operation import PackedUserOperation


class TransactionSubmitter:
    """Submits relayer transactions. Never broadcasts a call whose simulation failed."""

    def __init__(
        self,
        rpc_client: RpcClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the submitter.

        Args:
            rpc_client: JSON-RPC client (injected).
            settings: Uses relayer.*, chain.chain_id, chain.entrypoint_address and rpc receipt timing.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).

        Raises:
            MissingRequiredConfigError: If relayer.private_key is not set.
        """
        private_key = settings.relayer.private_key
        if not private_key:
            raise MissingRequiredConfigError("RELAYER__PRIVATE_KEY is required to submit transactions")
        self._rpc = rpc_client
        self._settings = settings
        self._account = Account.from_key(private_key)
        self._nonce_lock = asyncio.Lock()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def relayer_address(self) -> str:
        return self._account.address

    async def simulate(self, to: str, data: bytes, value: int = 0) -> PreparedTransaction:
        """Dry-run the call from the relayer and size its gas limit.

        Raises:
            RpcResponseError: The call reverts or cannot be estimated.
            RpcAPIError: Transport failure.
        """
        data_hex = "0x" + data.hex()
        await self._rpc.eth_call(to, data_hex, from_address=self.relayer_address)
        estimate = await self._rpc.estimate_gas(
            from_address=self.relayer_address,
            to=to,
            data=data_hex,
            value=value,
        )
        gas_limit = int(estimate * self._settings.relayer.gas_limit_multiplier)
        return PreparedTransaction(to=to, data=data, value=value, gas_limit=gas_limit)

    async def broadcast(self, prepared: PreparedTransaction) -> str:
        """Sign an EIP-1559 transaction with the relayer key and send it. Returns the tx hash."""
        async with self._nonce_lock:
            nonce = await self._rpc.get_transaction_count(self.relayer_address, "pending")
            priority_fee = await self._rpc.max_priority_fee_per_gas()
            base_fee = await self._rpc.get_base_fee()
            tx = {
                "type": 2,
                "chainId": self._settings.chain.chain_id,
                "nonce": nonce,
                "to": to_checksum_address(prepared.to),
                "value": prepared.value,
                "data": prepared.data,
                "gas": prepared.gas_limit,
                "maxPriorityFeePerGas": priority_fee,
                "maxFeePerGas": base_fee * 2 + priority_fee,
            }
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._rpc.send_raw_transaction(signed.raw_transaction)

        self._logger.info(
            "transaction_broadcast",
            tx_hash=tx_hash,
            to_masked=mask_address(prepared.to),
            nonce=nonce,
            gas_limit=prepared.gas_limit,
            value_wei=prepared.value,
        )
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> ReceiptSchema:
        """Poll for the receipt until rpc.receipt_timeout_seconds.

        Raises:
            ReceiptTimeoutError: No receipt within the timeout.
        """
        rpc_settings = self._settings.rpc
        loop = asyncio.get_running_loop()
        deadline = loop.time() + rpc_settings.receipt_timeout_seconds
        while True:
            receipt = await self._rpc.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if loop.time() >= deadline:
                raise ReceiptTimeoutError(tx_hash, rpc_settings.receipt_timeout_seconds)
            await asyncio.sleep(rpc_settings.receipt_poll_seconds)

    async def submit_call(self, to: str, data: bytes, value: int = 0) -> SubmissionResult:
        """Simulate, broadcast and wait for the receipt of a relayer call.

        Returns:
            SubmissionResult; confirmed only for a mined receipt with status 1.
        """
        result = SubmissionResult()
        try:
            prepared = await self.simulate(to, data, value)
        except RpcResponseError as e:
            result.status = SubmissionStatus.SIMULATION_FAILED
            result.error = str(e)
            self._logger.warning(
                "transaction_simulation_failed",
                to_masked=mask_address(to),
                error_message=str(e),
                error_code=e.code,
            )
            return result
        except RpcAPIError as e:
            result.error = str(e)
            self._logger.error(
                "transaction_simulation_unavailable",
                to_masked=mask_address(to),
                error_message=str(e),
            )
            return result

        try:
            result.tx_hash = await self.broadcast(prepared)
            receipt = await self.wait_for_receipt(result.tx_hash)
            result.receipt = receipt
            result.block_number = from_hex_quantity(receipt.get("blockNumber"))
            receipt_status = from_hex_quantity(receipt.get("status"))
        except ReceiptTimeoutError as e:
            result.error = str(e)
            self._logger.error("transaction_receipt_timeout", tx_hash=result.tx_hash)
            return result
        except (RpcAPIError, RpcResponseError) as e:
            result.error = str(e)
            self._logger.error(
                "transaction_submission_failed",
                tx_hash=result.tx_hash,
                to_masked=mask_address(to),
                error_message=str(e),
            )
            return result

        if receipt_status != 1:
            result.status = SubmissionStatus.REVERTED
            result.error = "Transaction reverted"
            self._logger.warning(
                "transaction_reverted",
                tx_hash=result.tx_hash,
                block_number=result.block_number,
            )
            return result

        result.status = SubmissionStatus.CONFIRMED
        self._logger.info(
            "transaction_confirmed",
            tx_hash=result.tx_hash,
            block_number=result.block_number,
        )
        return result

    async def submit_user_operation(self, operation: PackedUserOperation) -> SubmissionResult:
        """Bundle one user operation through EntryPoint.handleOps with the relayer as beneficiary.

        The EntryPoint does not revert handleOps when the account call fails, so a mined
        bundle counts as confirmed only if the operation's UserOperationEvent reports success.
        """
        entrypoint = self._settings.chain.entrypoint_address
        result = await self.submit_call(
            entrypoint,
            encode_handle_ops([operation], self.relayer_address),
        )
        if not result.confirmed or result.receipt is None:
            return result

        try:
            outcomes = decode_user_operation_events(result.receipt.get("logs") or [], entrypoint)
        except AbiDecodeError as e:
            outcomes = []
            self._logger.warning(
                "user_operation_event_undecodable",
                tx_hash=result.tx_hash,
                error_message=str(e),
            )
        outcome = next((o for o in outcomes if same_address(o.sender, operation.sender)), None)
        if outcome is None or not outcome.success:
            result.status = SubmissionStatus.REVERTED
            result.error = "User operation execution failed"
            self._logger.warning(
                "user_operation_failed",
                tx_hash=result.tx_hash,
                sender_masked=mask_address(operation.sender),
                event_found=outcome is not None,
            )
        return result
