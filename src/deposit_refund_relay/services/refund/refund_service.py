# -*- coding: utf-8 -*-
"""Refund service: validate, submit, and mark the deposit refunded once settlement is confirmed."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from deposit_refund_relay.exceptions import RefundRejectedError, RefundRejection
from deposit_refund_relay.utils.validation import mask_address

if TYPE_CHECKING:
    from deposit_refund_relay.models.user_operation import RefundRequest
    from deposit_refund_relay.services.deposits import DepositLedgerService
    from deposit_refund_relay.services.refund.refund_validator import RefundValidator
    from deposit_refund_relay.services.submission import SubmissionResult, TransactionSubmitter


class RefundService:
    """Authorizes and executes refunds of ready deposits."""

    def __init__(
        self,
        validator: RefundValidator,
        submitter: TransactionSubmitter,
        ledger: DepositLedgerService,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the refund service.

        Args:
            validator: Refund validator (injected).
            submitter: Transaction submitter (injected).
            ledger: Deposit ledger service (injected).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._validator = validator
        self._submitter = submitter
        self._ledger = ledger
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._in_flight: set[tuple[str, str, int]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def refund(self, request: RefundRequest) -> SubmissionResult:
        """Validate and submit a refund.

        The deposit is marked refunded only for a confirmed result. Any other result
        leaves the ledger untouched so the same request can be retried.

        Raises:
            RefundRejectedError: Validation failed, or a refund of the same deposit is running.
        """
        with bound_contextvars(
            account_masked=mask_address(request.account_address),
            deposit_tx_hash=request.deposit.tx_hash,
            deposit_log_index=request.deposit.log_index,
        ):
            authorized = await self._validator.validate(request)
            session = authorized.session
            deposit = authorized.deposit
            claim = (session.key, *deposit.key)
            if claim in self._in_flight:
                self._logger.info("refund_rejected", reason=RefundRejection.REFUND_IN_PROGRESS.value)
                raise RefundRejectedError(RefundRejection.REFUND_IN_PROGRESS)

            self._in_flight.add(claim)
            try:
                result = await self._submitter.submit_user_operation(authorized.user_operation)
                if result.confirmed and result.tx_hash is not None:
                    updated = self._ledger.mark_refunded(
                        session,
                        deposit.tx_hash,
                        deposit.log_index,
                        result.tx_hash,
                    )
                    self._logger.info(
                        "refund_settled",
                        refund_tx_hash=result.tx_hash,
                        amount=deposit.amount,
                        ledger_updated=updated is not None,
                    )
                else:
                    self._logger.warning(
                        "refund_not_settled",
                        status=result.status.value,
                        refund_tx_hash=result.tx_hash,
                        error_message=result.error,
                    )
                return result
            finally:
                self._in_flight.discard(claim)
