"""Deposit refund relay: tracks token deposits to smart accounts and relays passkey-signed refunds."""

from deposit_refund_relay.config import get_settings
from deposit_refund_relay.DI import Container

__version__ = "0.0.1"
__all__ = [
    "Container",
    "get_settings",
]
