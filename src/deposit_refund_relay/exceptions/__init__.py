"""Exceptions subpackage."""

from deposit_refund_relay.exceptions.exceptions import (
    AccountProvisioningError,
    AbiDecodeError,
    MissingRequiredConfigError,
    RateLimitError,
    ReceiptTimeoutError,
    RefundRejectedError,
    RefundRejection,
    RelayError,
    RpcAPIError,
    RpcResponseError,
)

__all__ = [
    "AccountProvisioningError",
    "AbiDecodeError",
    "MissingRequiredConfigError",
    "RateLimitError",
    "ReceiptTimeoutError",
    "RefundRejectedError",
    "RefundRejection",
    "RelayError",
    "RpcAPIError",
    "RpcResponseError",
]
