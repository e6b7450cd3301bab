"""ABI knowledge of the relay: token, smart account, factory and EntryPoint.

Encoders build calldata the relay sends; decoders parse calldata and logs that come
from outside. Every decoder either returns a typed value or raises AbiDecodeError.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import (
    decode_hex,
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
    to_checksum_address,
)

from deposit_refund_relay.clients.rpc_client.schema import LogSchema
from deposit_refund_relay.exceptions import AbiDecodeError
from deposit_refund_relay.models.user_operation import PackedUserOperation, WebAuthnSignature
from deposit_refund_relay.utils.validation import same_address

PACKED_USER_OPERATION_TYPE = "(address,uint256,bytes,bytes,bytes32,uint256,bytes32,bytes,bytes)"
EXECUTION_BATCH_TYPE = "(address,uint256,bytes)[]"
WEBAUTHN_SIGNATURE_TYPES = ["bytes32", "bytes32", "uint256", "uint256", "bytes", "string"]

TRANSFER_SELECTOR = function_signature_to_4byte_selector("transfer(address,uint256)")
EXECUTE_SELECTOR = function_signature_to_4byte_selector("execute(bytes32,bytes)")
INITIALIZE_WEBAUTHN_SELECTOR = function_signature_to_4byte_selector(
    "initializeWebAuthn(bytes32,bytes32)"
)
PREDICT_ADDRESS_SELECTOR = function_signature_to_4byte_selector("predictAddress(bytes)")
CLONE_AND_INITIALIZE_SELECTOR = function_signature_to_4byte_selector("cloneAndInitialize(bytes)")
HANDLE_OPS_SELECTOR = function_signature_to_4byte_selector(
    f"handleOps({PACKED_USER_OPERATION_TYPE}[],address)"
)

TRANSFER_TOPIC = "0x" + event_signature_to_log_topic(
    "Transfer(address,address,uint256)"
).hex()
USER_OPERATION_EVENT_TOPIC = "0x" + event_signature_to_log_topic(
    "UserOperationEvent(bytes32,address,address,uint256,bool,uint256,uint256)"
).hex()

# ERC-7579 mode: callType batch (0x01), execType default, no selector, no payload
BATCH_EXECUTE_MODE = b"\x01" + b"\x00" * 31


@dataclass(frozen=True, slots=True)
class AccountExecuteCall:
    """Decoded smart account execute(mode, executionData)."""

    mode: bytes
    execution_data: bytes


@dataclass(frozen=True, slots=True)
class ExecutionCall:
    """One entry of an execution batch."""

    target: str
    value: int
    call_data: bytes


@dataclass(frozen=True, slots=True)
class TokenTransferCall:
    """Decoded ERC-20 transfer(recipient, amount)."""

    recipient: str
    amount: int


@dataclass(frozen=True, slots=True)
class TransferLog:
    """Decoded ERC-20 Transfer event with its position on chain."""

    sender: str
    recipient: str
    amount: int
    tx_hash: str
    log_index: int
    block_number: int


@dataclass(frozen=True, slots=True)
class UserOperationOutcome:
    """Decoded EntryPoint UserOperationEvent."""

    user_op_hash: str
    sender: str
    nonce: int
    success: bool


def hex_to_bytes(value: str) -> bytes:
    """Decode 0x-prefixed hex into bytes."""
    return decode_hex(value)


def topic_for_address(address: str) -> str:
    """Left-pad an address into a 32-byte indexed topic."""
    return "0x" + "0" * 24 + address.strip().lower().removeprefix("0x")


def address_from_topic(topic: str) -> str:
    """Return the checksummed address held in the low 20 bytes of a topic."""
    body = topic.lower().removeprefix("0x")
    if len(body) != 64:
        raise AbiDecodeError(f"topic is not 32 bytes: {topic!r}")
    return to_checksum_address("0x" + body[-40:])


def _strip_selector(data: bytes, selector: bytes, name: str) -> bytes:
    if len(data) < 4 or data[:4] != selector:
        raise AbiDecodeError(f"calldata is not a call to {name}")
    return data[4:]


def _decode(types: Sequence[str], data: bytes, what: str) -> tuple:
    try:
        return abi_decode(list(types), data)
    except (DecodingError, ValueError, TypeError, OverflowError) as e:
        raise AbiDecodeError(f"cannot decode {what}: {e}") from e


# --- token -----------------------------------------------------------------


def encode_token_transfer(recipient: str, amount: int) -> bytes:
    return TRANSFER_SELECTOR + abi_encode(["address", "uint256"], [recipient.lower(), amount])


def decode_token_transfer(call_data: bytes) -> TokenTransferCall:
    """Decode transfer(address,uint256) calldata."""
    body = _strip_selector(call_data, TRANSFER_SELECTOR, "transfer")
    recipient, amount = _decode(["address", "uint256"], body, "transfer arguments")
    return TokenTransferCall(recipient=to_checksum_address(recipient), amount=int(amount))


def decode_transfer_log(log: LogSchema) -> TransferLog | None:
    """Decode an ERC-20 Transfer log; None for removed, foreign or incomplete logs."""
    if log.get("removed"):
        return None
    tx_hash = log.get("transactionHash")
    log_index = log.get("logIndex")
    block_number = log.get("blockNumber")
    if not tx_hash or log_index is None or block_number is None:
        return None
    try:
        topics = log.get("topics") or []
        if len(topics) != 3 or topics[0].lower() != TRANSFER_TOPIC:
            return None
        (amount,) = _decode(["uint256"], hex_to_bytes(log.get("data") or "0x"), "Transfer data")
        return TransferLog(
            sender=address_from_topic(topics[1]),
            recipient=address_from_topic(topics[2]),
            amount=int(amount),
            tx_hash=tx_hash,
            log_index=int(log_index, 16),
            block_number=int(block_number, 16),
        )
    except (AbiDecodeError, ValueError, TypeError, AttributeError):
        return None


# --- smart account ---------------------------------------------------------


def encode_account_execute(calls: Iterable[ExecutionCall], mode: bytes = BATCH_EXECUTE_MODE) -> bytes:
    execution_data = abi_encode(
        [EXECUTION_BATCH_TYPE],
        [[(c.target.lower(), c.value, c.call_data) for c in calls]],
    )
    return EXECUTE_SELECTOR + abi_encode(["bytes32", "bytes"], [mode, execution_data])


def decode_account_execute(call_data: bytes) -> AccountExecuteCall:
    """Decode execute(bytes32,bytes) calldata; any other function is rejected."""
    body = _strip_selector(call_data, EXECUTE_SELECTOR, "execute")
    mode, execution_data = _decode(["bytes32", "bytes"], body, "execute arguments")
    return AccountExecuteCall(mode=bytes(mode), execution_data=bytes(execution_data))


def decode_execution_batch(execution_data: bytes) -> list[ExecutionCall]:
    """Decode abi.encode((address,uint256,bytes)[]) into execution calls."""
    (calls,) = _decode([EXECUTION_BATCH_TYPE], execution_data, "execution batch")
    return [
        ExecutionCall(target=to_checksum_address(target), value=int(value), call_data=bytes(data))
        for target, value, data in calls
    ]


def encode_initialize_webauthn(qx: bytes, qy: bytes) -> bytes:
    return INITIALIZE_WEBAUTHN_SELECTOR + abi_encode(["bytes32", "bytes32"], [qx, qy])


def encode_webauthn_signature(signature: WebAuthnSignature) -> bytes:
    """Pack a WebAuthn assertion into the layout the account's validator expects."""
    return abi_encode(
        WEBAUTHN_SIGNATURE_TYPES,
        [
            signature.r,
            signature.s,
            signature.challenge_index,
            signature.type_index,
            signature.authenticator_data,
            signature.client_data_json,
        ],
    )


# --- factory ---------------------------------------------------------------


def encode_predict_address(init_call_data: bytes) -> bytes:
    return PREDICT_ADDRESS_SELECTOR + abi_encode(["bytes"], [init_call_data])


def encode_clone_and_initialize(init_call_data: bytes) -> bytes:
    return CLONE_AND_INITIALIZE_SELECTOR + abi_encode(["bytes"], [init_call_data])


def decode_address_result(result: bytes) -> str:
    (address,) = _decode(["address"], result, "address return value")
    return to_checksum_address(address)


# --- entry point -----------------------------------------------------------


def encode_handle_ops(operations: Sequence[PackedUserOperation], beneficiary: str) -> bytes:
    return HANDLE_OPS_SELECTOR + abi_encode(
        [f"{PACKED_USER_OPERATION_TYPE}[]", "address"],
        [[op.as_abi_tuple() for op in operations], beneficiary.lower()],
    )


def decode_user_operation_events(
    logs: Iterable[LogSchema],
    entrypoint_address: str,
) -> list[UserOperationOutcome]:
    """Extract UserOperationEvent entries emitted by the EntryPoint in a receipt."""
    outcomes: list[UserOperationOutcome] = []
    for log in logs:
        topics = log.get("topics") or []
        if not same_address(log.get("address"), entrypoint_address):
            continue
        if len(topics) != 4 or topics[0].lower() != USER_OPERATION_EVENT_TOPIC:
            continue
        nonce, success, _gas_cost, _gas_used = _decode(
            ["uint256", "bool", "uint256", "uint256"],
            hex_to_bytes(log.get("data") or "0x"),
            "UserOperationEvent data",
        )
        outcomes.append(
            UserOperationOutcome(
                user_op_hash=topics[1],
                sender=address_from_topic(topics[2]),
                nonce=int(nonce),
                success=bool(success),
            )
        )
    return outcomes
