# -*- coding: utf-8 -*-
"""Deposit tracking: chunked log fetcher, ledger and live watcher."""

from deposit_refund_relay.services.deposits.deposit_ledger import DepositLedgerService
from deposit_refund_relay.services.deposits.deposit_watcher import DepositWatcherService
from deposit_refund_relay.services.deposits.log_fetcher import (
    ChunkedLogFetcher,
    iter_block_ranges,
)

__all__ = [
    "ChunkedLogFetcher",
    "DepositLedgerService",
    "DepositWatcherService",
    "iter_block_ranges",
]
