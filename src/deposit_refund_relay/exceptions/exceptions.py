"""Custom exceptions for the chain RPC, contract decoding and refund authorization."""

from __future__ import annotations

from enum import Enum
from typing import Any


class RelayError(Exception):
    """Base exception for relay errors."""

    pass


class MissingRequiredConfigError(RelayError):
    """Raised when a required configuration value is missing."""

    pass


class RpcAPIError(RelayError):
    """Raised when a JSON-RPC request fails at the transport level after retries."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class RateLimitError(RpcAPIError):
    """Raised when the RPC returns HTTP 429 (Too Many Requests)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded (429)",
        *,
        url: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=429)
        self.retry_after = retry_after


class ReceiptTimeoutError(RpcAPIError):
    """Raised when no receipt shows up within the configured wait."""

    def __init__(self, tx_hash: str, timeout_seconds: float) -> None:
        super().__init__(f"No receipt for {tx_hash} after {timeout_seconds:.0f}s")
        self.tx_hash = tx_hash
        self.timeout_seconds = timeout_seconds


class RpcResponseError(RelayError):
    """Raised when the node answers with a JSON-RPC error object (e.g. execution reverted)."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        code: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.code = code
        self.data = data


class AbiDecodeError(RelayError, ValueError):
    """Raised when calldata or log data cannot be decoded as the expected ABI shape."""

    pass


class AccountProvisioningError(RelayError):
    """Raised when deploying or funding a new account does not settle."""

    def __init__(self, message: str, *, stage: str, status: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.status = status
        self.tx_hash = tx_hash


class RefundRejection(str, Enum):
    """Machine-readable reasons a refund request is refused (client errors)."""

    SESSION_NOT_FOUND = "account_session_not_found"
    CREDENTIAL_MISMATCH = "credential_mismatch"
    DEPOSIT_NOT_FOUND = "deposit_not_found"
    ALREADY_REFUNDED = "deposit_already_refunded"
    BELOW_MINIMUM = "deposit_below_minimum"
    REFUND_IN_PROGRESS = "refund_in_progress"
    SENDER_MISMATCH = "user_operation_sender_mismatch"
    INVALID_CALL_FUNCTION = "invalid_call_function"
    MISSING_EXECUTION_CALLS = "missing_execution_calls"
    INVALID_TARGET = "invalid_execution_target"
    NATIVE_VALUE_NOT_ALLOWED = "native_value_not_allowed"
    INVALID_TOKEN_CALL = "invalid_token_call"
    RECIPIENT_MISMATCH = "transfer_recipient_mismatch"
    AMOUNT_MISMATCH = "transfer_amount_mismatch"
    MALFORMED_REQUEST = "malformed_request"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]

    @property
    def http_status(self) -> int:
        return _REJECTION_STATUS.get(self, 400)


_REJECTION_MESSAGES: dict[RefundRejection, str] = {
    RefundRejection.SESSION_NOT_FOUND: "Account session not found",
    RefundRejection.CREDENTIAL_MISMATCH: "Credential mismatch",
    RefundRejection.DEPOSIT_NOT_FOUND: "Deposit record not found",
    RefundRejection.ALREADY_REFUNDED: "Deposit already refunded",
    RefundRejection.BELOW_MINIMUM: "Deposit below minimum amount",
    RefundRejection.REFUND_IN_PROGRESS: "A refund for this deposit is already in progress",
    RefundRejection.SENDER_MISMATCH: "UserOperation sender mismatch",
    RefundRejection.INVALID_CALL_FUNCTION: "Invalid callData function",
    RefundRejection.MISSING_EXECUTION_CALLS: "Missing execution calls",
    RefundRejection.INVALID_TARGET: "Execution target must be the token contract",
    RefundRejection.NATIVE_VALUE_NOT_ALLOWED: "Token transfer cannot include native value",
    RefundRejection.INVALID_TOKEN_CALL: "Token call must be transfer",
    RefundRejection.RECIPIENT_MISMATCH: "Transfer recipient mismatch",
    RefundRejection.AMOUNT_MISMATCH: "Transfer amount mismatch",
    RefundRejection.MALFORMED_REQUEST: "Malformed refund request",
}

_REJECTION_STATUS: dict[RefundRejection, int] = {
    RefundRejection.SESSION_NOT_FOUND: 404,
    RefundRejection.CREDENTIAL_MISMATCH: 403,
    RefundRejection.DEPOSIT_NOT_FOUND: 404,
    RefundRejection.ALREADY_REFUNDED: 409,
    RefundRejection.REFUND_IN_PROGRESS: 409,
}


class RefundRejectedError(RelayError):
    """Raised when a refund request fails validation. Never retried; no state is changed."""

    def __init__(self, reason: RefundRejection, detail: str | None = None) -> None:
        super().__init__(detail or reason.message)
        self.reason = reason
        self.detail = detail
