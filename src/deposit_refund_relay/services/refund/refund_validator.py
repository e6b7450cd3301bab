# -*- coding: utf-8 -*-
"""Refund validator: cross-checks a signed refund request against the relay's own deposit ledger."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NoReturn

import structlog
from eth_abi.exceptions import EncodingError

from deposit_refund_relay.contracts.abi import (
    decode_account_execute,
    decode_execution_batch,
    decode_token_transfer,
    encode_webauthn_signature,
)
from deposit_refund_relay.exceptions import AbiDecodeError, RefundRejectedError, RefundRejection
from deposit_refund_relay.utils.validation import mask_address, same_address

if TYPE_CHECKING:
    from deposit_refund_relay.config import Settings
    from deposit_refund_relay.models.account_session import AccountSession
    from deposit_refund_relay.models.deposit_record import DepositRecord
    from deposit_refund_relay.models.user_operation import PackedUserOperation, RefundRequest
    from deposit_refund_relay.persistence.repositories.interfaces import (
        IAccountSessionRepository,
    )


@dataclass(frozen=True, slots=True)
class AuthorizedRefund:
    """A refund that passed every check, with the operation ready to submit."""

    session: AccountSession
    deposit: DepositRecord
    user_operation: PackedUserOperation


class RefundValidator:
    """Runs the refund checks in a fixed order; the first failure rejects the request.

    Validation never mutates a session or its ledger.
    """

    def __init__(
        self,
        session_repository: IAccountSessionRepository,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            session_repository: Session registry (injected).
            settings: Uses chain.token_address.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._sessions = session_repository
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def validate(self, request: RefundRequest) -> AuthorizedRefund:
        """Check the request and return the authorized user operation.

        Raises:
            RefundRejectedError: With the reason of the first failing check.
        """
        # Ledger checks
        session = await self._sessions.get(request.account_address)
        if session is None:
            self._reject(request, RefundRejection.SESSION_NOT_FOUND)
        if session.credential_id != request.credential_id:
            self._reject(request, RefundRejection.CREDENTIAL_MISMATCH)

        claimed = request.deposit
        record = session.match_deposit(
            tx_hash=claimed.tx_hash,
            log_index=claimed.log_index,
            sender=claimed.sender,
            amount=claimed.amount,
        )
        if record is None:
            self._reject(request, RefundRejection.DEPOSIT_NOT_FOUND)
        if record.refunded:
            self._reject(request, RefundRejection.ALREADY_REFUNDED)
        if not record.ready:
            self._reject(request, RefundRejection.BELOW_MINIMUM)

        # Operation checks
        operation = request.user_operation
        if not same_address(operation.sender, request.account_address):
            self._reject(request, RefundRejection.SENDER_MISMATCH)

        try:
            execute = decode_account_execute(operation.call_data)
        except AbiDecodeError as e:
            self._reject(request, RefundRejection.INVALID_CALL_FUNCTION, str(e))
        try:
            calls = decode_execution_batch(execute.execution_data)
        except AbiDecodeError as e:
            self._reject(request, RefundRejection.MALFORMED_REQUEST, str(e))
        if not calls:
            self._reject(request, RefundRejection.MISSING_EXECUTION_CALLS)

        # Only the first call is a refund; anything after it is not evaluated.
        call = calls[0]
        if not same_address(call.target, self._settings.chain.token_address):
            self._reject(request, RefundRejection.INVALID_TARGET)
        if call.value != 0:
            self._reject(request, RefundRejection.NATIVE_VALUE_NOT_ALLOWED)

        try:
            transfer = decode_token_transfer(call.call_data)
        except AbiDecodeError as e:
            self._reject(request, RefundRejection.INVALID_TOKEN_CALL, str(e))
        if not same_address(transfer.recipient, record.sender):
            self._reject(request, RefundRejection.RECIPIENT_MISMATCH)
        if transfer.amount != record.amount:
            self._reject(request, RefundRejection.AMOUNT_MISMATCH)

        try:
            authorized = operation.with_authorization(
                nonce=request.nonce,
                signature=encode_webauthn_signature(request.signature),
            )
        except EncodingError as e:
            self._reject(request, RefundRejection.MALFORMED_REQUEST, str(e))

        self._logger.info(
            "refund_authorized",
            account_masked=mask_address(request.account_address),
            recipient_masked=mask_address(record.sender),
            amount=record.amount,
            tx_hash=record.tx_hash,
            log_index=record.log_index,
            execution_calls=len(calls),
        )
        return AuthorizedRefund(session=session, deposit=record, user_operation=authorized)

    def _reject(
        self,
        request: RefundRequest,
        reason: RefundRejection,
        detail: str | None = None,
    ) -> NoReturn:
        self._logger.info(
            "refund_rejected",
            reason=reason.value,
            detail=detail,
            account_masked=mask_address(request.account_address),
            tx_hash=request.deposit.tx_hash,
            log_index=request.deposit.log_index,
        )
        raise RefundRejectedError(reason, detail)
