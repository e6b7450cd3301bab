# -*- coding: utf-8 -*-
"""Refund authorization and execution."""

from deposit_refund_relay.services.refund.refund_service import RefundService
from deposit_refund_relay.services.refund.refund_validator import AuthorizedRefund, RefundValidator

__all__ = ["AuthorizedRefund", "RefundService", "RefundValidator"]
