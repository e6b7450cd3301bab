"""User operation and refund request types.

These are the typed forms of the untrusted refund payload once the HTTP layer has
checked its shape. Nothing here implies the content has been validated against
the deposit ledger; see services.refund.refund_validator for that.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class PackedUserOperation:
    """ERC-4337 v0.7+/v0.8 packed user operation."""

    sender: str
    nonce: int
    init_code: bytes
    call_data: bytes
    account_gas_limits: bytes
    """verificationGasLimit (16 bytes) || callGasLimit (16 bytes)."""
    pre_verification_gas: int
    gas_fees: bytes
    """maxPriorityFeePerGas (16 bytes) || maxFeePerGas (16 bytes)."""
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    def with_authorization(self, *, nonce: int, signature: bytes) -> PackedUserOperation:
        """Return a copy carrying the final nonce and encoded signature."""
        return replace(self, nonce=nonce, signature=signature)

    def as_abi_tuple(self) -> tuple[Any, ...]:
        """Field order of the PackedUserOperation struct for ABI encoding."""
        return (
            self.sender.lower(),
            self.nonce,
            self.init_code,
            self.call_data,
            self.account_gas_limits,
            self.pre_verification_gas,
            self.gas_fees,
            self.paymaster_and_data,
            self.signature,
        )


@dataclass(frozen=True, slots=True)
class WebAuthnSignature:
    """Challenge-response assertion produced by the passkey ceremony."""

    r: bytes
    s: bytes
    challenge_index: int
    type_index: int
    authenticator_data: bytes
    client_data_json: str


@dataclass(frozen=True, slots=True)
class DepositReference:
    """Deposit the caller claims to be refunding."""

    tx_hash: str
    log_index: int
    sender: str
    amount: int


@dataclass(frozen=True, slots=True)
class RefundRequest:
    """A signed refund request as received from the client."""

    account_address: str
    credential_id: str
    signature: WebAuthnSignature
    nonce: int
    user_operation: PackedUserOperation
    deposit: DepositReference
