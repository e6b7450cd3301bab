# -*- coding: utf-8 -*-
"""Utility modules."""

from deposit_refund_relay.utils.dedupe import deposit_key
from deposit_refund_relay.utils.validation import (
    is_hex_address,
    is_hex_data,
    mask_address,
    normalize_address,
    same_address,
)

__all__ = [
    "deposit_key",
    "is_hex_address",
    "is_hex_data",
    "mask_address",
    "normalize_address",
    "same_address",
]
