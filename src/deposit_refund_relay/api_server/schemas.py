"""Request/response bodies of the HTTP API (camelCase JSON).

Quantities accept a JSON number, a decimal string or a 0x hex string, the way
browser clients serialize bigints.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deposit_refund_relay.models.deposit_record import DepositRecord
from deposit_refund_relay.models.user_operation import (
    DepositReference,
    PackedUserOperation,
    RefundRequest,
    WebAuthnSignature,
)
from deposit_refund_relay.utils.validation import is_hex_address, is_hex_data


def _parse_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("quantity must be a number or numeric string")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if s.lower().startswith("0x"):
            return int(s, 16)
        if s.isdigit():
            return int(s)
    raise ValueError("quantity must be a number, decimal string or 0x hex string")


def _hex_to_bytes(size: int | None = None) -> Any:
    def parse(value: Any) -> bytes:
        if not is_hex_data(value, size=size):
            expected = f"{size}-byte " if size is not None else ""
            raise ValueError(f"expected {expected}0x hex data")
        return bytes.fromhex(value[2:])

    return parse


def _check_address(value: str) -> str:
    if not is_hex_address(value):
        raise ValueError("expected a 0x address")
    return value.strip()


def _check_tx_hash(value: str) -> str:
    if not is_hex_data(value, size=32):
        raise ValueError("expected a 32-byte 0x transaction hash")
    return value


# Every quantity ends up ABI-encoded as a uint256
UINT256_MAX = 2**256 - 1

Quantity = Annotated[int, BeforeValidator(_parse_quantity), Field(ge=0, le=UINT256_MAX)]
HexData = Annotated[bytes, BeforeValidator(_hex_to_bytes())]
Bytes32 = Annotated[bytes, BeforeValidator(_hex_to_bytes(32))]
Address = Annotated[str, AfterValidator(_check_address)]
TxHash = Annotated[str, AfterValidator(_check_tx_hash)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class WebAuthnMetadataBody(_CamelModel):
    challenge_index: Quantity
    type_index: Quantity
    authenticator_data: HexData
    client_data_json: str = Field(alias="clientDataJSON")


class UserOperationBody(_CamelModel):
    """Packed user operation as built by the client. Its nonce is superseded by the request nonce."""

    sender: Address
    nonce: Quantity = 0
    init_code: HexData = b""
    call_data: HexData
    account_gas_limits: Bytes32
    pre_verification_gas: Quantity
    gas_fees: Bytes32
    paymaster_and_data: HexData = b""
    signature: HexData = b""

    def to_domain(self) -> PackedUserOperation:
        return PackedUserOperation(
            sender=self.sender,
            nonce=self.nonce,
            init_code=self.init_code,
            call_data=self.call_data,
            account_gas_limits=self.account_gas_limits,
            pre_verification_gas=self.pre_verification_gas,
            gas_fees=self.gas_fees,
            paymaster_and_data=self.paymaster_and_data,
            signature=self.signature,
        )


class DepositReferenceBody(_CamelModel):
    tx_hash: TxHash
    log_index: int = Field(ge=0)
    sender: Address
    amount: Quantity


class RefundRequestBody(_CamelModel):
    """POST /account/refund."""

    account_address: Address
    credential_id: str = Field(min_length=1)
    metadata: WebAuthnMetadataBody
    r_hex: Bytes32
    s_hex: Bytes32
    user_op: UserOperationBody
    nonce: Quantity
    deposit: DepositReferenceBody

    def to_domain(self) -> RefundRequest:
        return RefundRequest(
            account_address=self.account_address,
            credential_id=self.credential_id,
            signature=WebAuthnSignature(
                r=self.r_hex,
                s=self.s_hex,
                challenge_index=self.metadata.challenge_index,
                type_index=self.metadata.type_index,
                authenticator_data=self.metadata.authenticator_data,
                client_data_json=self.metadata.client_data_json,
            ),
            nonce=self.nonce,
            user_operation=self.user_op.to_domain(),
            deposit=DepositReference(
                tx_hash=self.deposit.tx_hash,
                log_index=self.deposit.log_index,
                sender=self.deposit.sender,
                amount=self.deposit.amount,
            ),
        )


class PublicKeyBody(_CamelModel):
    """P-256 public key coordinates of the passkey."""

    x: Bytes32
    y: Bytes32


class CreateAccountBody(_CamelModel):
    """POST /account/create."""

    credential_id: str = Field(min_length=1)
    public_key: PublicKeyBody


def serialize_deposit(record: DepositRecord) -> dict[str, Any]:
    """JSON form of a ledger record (amounts and block numbers as decimal strings)."""
    return {
        "sender": record.sender,
        "amount": str(record.amount),
        "txHash": record.tx_hash,
        "logIndex": record.log_index,
        "blockNumber": str(record.block_number),
        "blockTimestamp": record.block_timestamp,
        "ready": record.ready,
        "refunded": record.refunded,
        "refundTxHash": record.refund_tx_hash,
    }
