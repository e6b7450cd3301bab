# -*- coding: utf-8 -*-
"""Transaction submission (simulate, broadcast, confirm)."""

from deposit_refund_relay.services.submission.dto import (
    PreparedTransaction,
    SubmissionResult,
    SubmissionStatus,
)
from deposit_refund_relay.services.submission.transaction_submitter import TransactionSubmitter

__all__ = [
    "PreparedTransaction",
    "SubmissionResult",
    "SubmissionStatus",
    "TransactionSubmitter",
]
