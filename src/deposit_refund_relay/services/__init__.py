# -*- coding: utf-8 -*-
"""Application services."""

from deposit_refund_relay.services.accounts import AccountProvisioningService, ProvisionedAccount
from deposit_refund_relay.services.deposits import (
    ChunkedLogFetcher,
    DepositLedgerService,
    DepositWatcherService,
)
from deposit_refund_relay.services.refund import AuthorizedRefund, RefundService, RefundValidator
from deposit_refund_relay.services.submission import (
    SubmissionResult,
    SubmissionStatus,
    TransactionSubmitter,
)

__all__ = [
    "AccountProvisioningService",
    "AuthorizedRefund",
    "ChunkedLogFetcher",
    "DepositLedgerService",
    "DepositWatcherService",
    "ProvisionedAccount",
    "RefundService",
    "RefundValidator",
    "SubmissionResult",
    "SubmissionStatus",
    "TransactionSubmitter",
]
