# -*- coding: utf-8 -*-
"""Unit tests for contract encoders/decoders."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address

from deposit_refund_relay.clients.rpc_client import LogSchema
from deposit_refund_relay.contracts.abi import (
    BATCH_EXECUTE_MODE,
    EXECUTE_SELECTOR,
    HANDLE_OPS_SELECTOR,
    TRANSFER_SELECTOR,
    TRANSFER_TOPIC,
    USER_OPERATION_EVENT_TOPIC,
    WEBAUTHN_SIGNATURE_TYPES,
    ExecutionCall,
    address_from_topic,
    decode_account_execute,
    decode_address_result,
    decode_execution_batch,
    decode_token_transfer,
    decode_transfer_log,
    decode_user_operation_events,
    encode_account_execute,
    encode_handle_ops,
    encode_token_transfer,
    encode_webauthn_signature,
    topic_for_address,
)
from deposit_refund_relay.exceptions import AbiDecodeError
from deposit_refund_relay.models.user_operation import PackedUserOperation, WebAuthnSignature


def test_well_known_selectors_and_topics() -> None:
    assert TRANSFER_SELECTOR == bytes.fromhex("a9059cbb")
    assert EXECUTE_SELECTOR == bytes.fromhex("e9ae5c53")
    assert TRANSFER_TOPIC == "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def test_topic_for_address_pads_to_32_bytes(sender: str) -> None:
    topic = topic_for_address(sender)
    assert len(topic) == 66
    assert address_from_topic(topic).lower() == sender


def test_address_from_topic_rejects_short_topic() -> None:
    with pytest.raises(AbiDecodeError):
        address_from_topic("0x1234")


def test_execute_batch_decodes_to_typed_calls(token_address: str, sender: str) -> None:
    transfer = encode_token_transfer(sender, 1_000_000)
    call_data = encode_account_execute([ExecutionCall(target=token_address, value=0, call_data=transfer)])

    execute = decode_account_execute(call_data)
    calls = decode_execution_batch(execute.execution_data)

    assert execute.mode == BATCH_EXECUTE_MODE
    assert len(calls) == 1
    assert calls[0].target.lower() == token_address.lower()
    assert calls[0].value == 0
    decoded = decode_token_transfer(calls[0].call_data)
    assert decoded.recipient.lower() == sender
    assert decoded.amount == 1_000_000


def test_decode_account_execute_rejects_other_functions(sender: str) -> None:
    with pytest.raises(AbiDecodeError):
        decode_account_execute(encode_token_transfer(sender, 1))
    with pytest.raises(AbiDecodeError):
        decode_account_execute(b"\x00\x01")


def test_decode_account_execute_rejects_truncated_arguments() -> None:
    with pytest.raises(AbiDecodeError):
        decode_account_execute(EXECUTE_SELECTOR + b"\x00" * 10)


def test_decode_execution_batch_rejects_garbage() -> None:
    with pytest.raises(AbiDecodeError):
        decode_execution_batch(b"\xff" * 7)


def test_decode_token_transfer_rejects_other_selector(token_address: str) -> None:
    approve = bytes.fromhex("095ea7b3") + abi_encode(["address", "uint256"], [token_address, 5])
    with pytest.raises(AbiDecodeError):
        decode_token_transfer(approve)


def test_decode_transfer_log_returns_typed_transfer(
    transfer_log_factory: Callable[..., LogSchema],
    sender: str,
    account_address: str,
) -> None:
    log = transfer_log_factory(amount=1_234_567, log_index=3, block_number=77)

    transfer = decode_transfer_log(log)

    assert transfer is not None
    assert transfer.sender.lower() == sender
    assert transfer.recipient.lower() == account_address
    assert transfer.amount == 1_234_567
    assert transfer.log_index == 3
    assert transfer.block_number == 77


def test_decode_transfer_log_skips_removed_foreign_and_incomplete_logs(
    transfer_log_factory: Callable[..., LogSchema],
) -> None:
    assert decode_transfer_log(transfer_log_factory(removed=True)) is None

    foreign = transfer_log_factory()
    foreign["topics"] = ["0x" + "00" * 32, *foreign["topics"][1:]]
    assert decode_transfer_log(foreign) is None

    no_index = transfer_log_factory()
    del no_index["logIndex"]
    assert decode_transfer_log(no_index) is None

    bad_data = transfer_log_factory()
    bad_data["data"] = "0x1234"
    assert decode_transfer_log(bad_data) is None


@pytest.mark.parametrize(
    ("field", "value"),
    [("logIndex", 3), ("blockNumber", ["0x1"]), ("topics", [None, None, None])],
)
def test_decode_transfer_log_skips_wrongly_typed_fields(
    transfer_log_factory: Callable[..., LogSchema],
    field: str,
    value: object,
) -> None:
    log = transfer_log_factory()
    log[field] = value  # type: ignore[literal-required]

    assert decode_transfer_log(log) is None


def test_encode_webauthn_signature_matches_validator_layout() -> None:
    signature = WebAuthnSignature(
        r=b"\x01" * 32,
        s=b"\x02" * 32,
        challenge_index=23,
        type_index=1,
        authenticator_data=b"\xaa" * 37,
        client_data_json='{"type":"webauthn.get"}',
    )

    decoded = abi_decode(WEBAUTHN_SIGNATURE_TYPES, encode_webauthn_signature(signature))

    assert decoded == (b"\x01" * 32, b"\x02" * 32, 23, 1, b"\xaa" * 37, '{"type":"webauthn.get"}')


def test_encode_handle_ops_starts_with_selector(account_address: str, sender: str) -> None:
    op = PackedUserOperation(
        sender=account_address,
        nonce=1,
        init_code=b"",
        call_data=b"\x01",
        account_gas_limits=b"\x00" * 32,
        pre_verification_gas=1,
        gas_fees=b"\x00" * 32,
    )
    assert encode_handle_ops([op], sender).startswith(HANDLE_OPS_SELECTOR)


def test_decode_address_result_returns_address(account_address: str) -> None:
    result = abi_encode(["address"], [account_address])
    assert decode_address_result(result).lower() == account_address


def test_decode_user_operation_events_filters_by_entrypoint(
    settings, account_address: str
) -> None:
    entrypoint = settings.chain.entrypoint_address
    event: LogSchema = {
        "address": entrypoint.upper().replace("0X", "0x"),
        "topics": [
            USER_OPERATION_EVENT_TOPIC,
            "0x" + "cd" * 32,
            topic_for_address(account_address),
            topic_for_address("0x" + "00" * 20),
        ],
        "data": "0x" + abi_encode(["uint256", "bool", "uint256", "uint256"], [9, False, 1, 2]).hex(),
    }
    foreign = dict(event, address="0x" + "99" * 20)

    outcomes = decode_user_operation_events([foreign, event], entrypoint)

    assert len(outcomes) == 1
    assert outcomes[0].sender.lower() == account_address
    assert outcomes[0].nonce == 9
    assert outcomes[0].success is False


def test_decoded_addresses_are_checksummed(account_address: str, sender: str, token_address: str) -> None:
    checksummed_account = to_checksum_address(account_address)
    transfer_data = encode_token_transfer(sender, 5)
    batch = encode_account_execute([ExecutionCall(target=token_address, value=0, call_data=transfer_data)])

    assert decode_address_result(abi_encode(["address"], [account_address])) == checksummed_account
    assert decode_token_transfer(transfer_data).recipient == to_checksum_address(sender)
    call = decode_execution_batch(decode_account_execute(batch).execution_data)[0]
    assert call.target == to_checksum_address(token_address)
