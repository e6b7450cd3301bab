# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from deposit_refund_relay.clients.rpc_client import LogSchema, to_hex_quantity
from deposit_refund_relay.config import Settings
from deposit_refund_relay.contracts.abi import (
    TRANSFER_TOPIC,
    ExecutionCall,
    encode_account_execute,
    encode_token_transfer,
    topic_for_address,
)
from deposit_refund_relay.models.account_session import AccountSession
from deposit_refund_relay.models.deposit_record import DepositRecord
from deposit_refund_relay.models.user_operation import (
    DepositReference,
    PackedUserOperation,
    RefundRequest,
    WebAuthnSignature,
)
from deposit_refund_relay.persistence.repositories.in_memory import (
    InMemoryAccountSessionRepository,
)

# Well-known development key (Hardhat/Anvil account #0); never holds real funds.
RELAYER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
RELAYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.fixture
def settings() -> Settings:
    """Settings with a relayer key and fast polling; defaults elsewhere."""
    return Settings(
        relayer={"private_key": RELAYER_KEY},
        rpc={"url": "http://rpc.test", "receipt_timeout_seconds": 1.0, "receipt_poll_seconds": 0.05},
        deposits={"poll_seconds": 0.1},
    )


@pytest.fixture
def relayer_address() -> str:
    return RELAYER_ADDRESS


@pytest.fixture
def token_address(settings: Settings) -> str:
    return settings.chain.token_address


@pytest.fixture
def account_address() -> str:
    """Managed smart account used by tests."""
    return "0x5fbdb2315678afecb367f032d93f642f64180aa3"


@pytest.fixture
def sender() -> str:
    """Default depositor."""
    return "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"


@pytest.fixture
def credential_id() -> str:
    return "credential-1"


@pytest.fixture
def fake_rpc() -> SimpleNamespace:
    """RpcClient stand-in; every method is an AsyncMock."""
    return SimpleNamespace(
        eth_call=AsyncMock(return_value="0x"),
        get_block_number=AsyncMock(return_value=100),
        get_block_timestamp=AsyncMock(side_effect=lambda n: 1_700_000_000 + n * 12),
        get_logs=AsyncMock(return_value=[]),
        get_code=AsyncMock(return_value="0x"),
        get_transaction_count=AsyncMock(return_value=7),
        estimate_gas=AsyncMock(return_value=100_000),
        max_priority_fee_per_gas=AsyncMock(return_value=1_000_000_000),
        get_base_fee=AsyncMock(return_value=10_000_000_000),
        send_raw_transaction=AsyncMock(return_value="0x" + "ab" * 32),
        get_transaction_receipt=AsyncMock(return_value=None),
    )


@pytest.fixture
def session(account_address: str, credential_id: str) -> AccountSession:
    return AccountSession(account_address=account_address, credential_id=credential_id)


@pytest.fixture
def session_repo() -> InMemoryAccountSessionRepository:
    """Fresh in-memory session registry per test."""
    return InMemoryAccountSessionRepository()


@pytest.fixture
def deposit_record_factory(sender: str, settings: Settings) -> Callable[..., DepositRecord]:
    """Build DepositRecord with sensible defaults and easy overrides."""

    def _build(**overrides: Any) -> DepositRecord:
        log_index = overrides.pop("log_index", 0)
        return DepositRecord.create(
            sender=overrides.pop("sender", sender),
            amount=overrides.pop("amount", 1_000_000),
            tx_hash=overrides.pop("tx_hash", "0x" + f"{log_index + 1:064x}"),
            log_index=log_index,
            block_number=overrides.pop("block_number", 50),
            block_timestamp=overrides.pop("block_timestamp", 1_700_000_600),
            min_deposit=overrides.pop("min_deposit", settings.deposits.min_deposit),
        )

    return _build


@pytest.fixture
def transfer_log_factory(
    sender: str,
    account_address: str,
    token_address: str,
) -> Callable[..., LogSchema]:
    """Build a raw eth_getLogs Transfer entry into the account."""

    def _build(**overrides: Any) -> LogSchema:
        amount = overrides.pop("amount", 1_000_000)
        log_index = overrides.pop("log_index", 0)
        block_number = overrides.pop("block_number", 50)
        log: LogSchema = {
            "address": token_address,
            "topics": [
                TRANSFER_TOPIC,
                topic_for_address(overrides.pop("sender", sender)),
                topic_for_address(overrides.pop("recipient", account_address)),
            ],
            "data": "0x" + amount.to_bytes(32, "big").hex(),
            "blockNumber": to_hex_quantity(block_number),
            "transactionHash": overrides.pop("tx_hash", "0x" + f"{block_number:032x}{log_index:032x}"),
            "logIndex": to_hex_quantity(log_index),
            "removed": overrides.pop("removed", False),
        }
        return log

    return _build


@pytest.fixture
def refund_call_data(token_address: str) -> Callable[..., bytes]:
    """Encode execute(batch) wrapping token calls; defaults to a single transfer."""

    def _build(
        recipient: str,
        amount: int,
        *,
        target: str | None = None,
        value: int = 0,
        inner: bytes | None = None,
        extra_calls: list[ExecutionCall] | None = None,
    ) -> bytes:
        call = ExecutionCall(
            target=target or token_address,
            value=value,
            call_data=inner if inner is not None else encode_token_transfer(recipient, amount),
        )
        return encode_account_execute([call, *(extra_calls or [])])

    return _build


@pytest.fixture
def refund_request_factory(
    account_address: str,
    credential_id: str,
    refund_call_data: Callable[..., bytes],
) -> Callable[..., RefundRequest]:
    """Build a RefundRequest that refunds `record` exactly; override any field."""

    def _build(record: DepositRecord, **overrides: Any) -> RefundRequest:
        call_data = overrides.pop("call_data", None)
        if call_data is None:
            call_data = refund_call_data(record.sender, record.amount)
        operation = PackedUserOperation(
            sender=overrides.pop("op_sender", account_address),
            nonce=0,
            init_code=b"",
            call_data=call_data,
            account_gas_limits=(200_000).to_bytes(16, "big") + (300_000).to_bytes(16, "big"),
            pre_verification_gas=50_000,
            gas_fees=(1_000_000_000).to_bytes(16, "big") + (30_000_000_000).to_bytes(16, "big"),
        )
        return RefundRequest(
            account_address=overrides.pop("account_address", account_address),
            credential_id=overrides.pop("credential_id", credential_id),
            signature=WebAuthnSignature(
                r=b"\x11" * 32,
                s=b"\x22" * 32,
                challenge_index=23,
                type_index=1,
                authenticator_data=b"\x49" * 37,
                client_data_json='{"type":"webauthn.get","challenge":"abc"}',
            ),
            nonce=overrides.pop("nonce", 5),
            user_operation=operation,
            deposit=DepositReference(
                tx_hash=overrides.pop("tx_hash", record.tx_hash),
                log_index=overrides.pop("log_index", record.log_index),
                sender=overrides.pop("deposit_sender", record.sender),
                amount=overrides.pop("amount", record.amount),
            ),
        )

    return _build
