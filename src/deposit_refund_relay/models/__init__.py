# -*- coding: utf-8 -*-
"""Domain models."""

from deposit_refund_relay.models.account_session import (
    AccountSession,
    WatcherHandle,
    WatcherState,
)
from deposit_refund_relay.models.deposit_record import DepositRecord
from deposit_refund_relay.models.user_operation import (
    DepositReference,
    PackedUserOperation,
    RefundRequest,
    WebAuthnSignature,
)

__all__ = [
    "AccountSession",
    "DepositRecord",
    "DepositReference",
    "PackedUserOperation",
    "RefundRequest",
    "WatcherHandle",
    "WatcherState",
    "WebAuthnSignature",
]
