"""Validation helpers for addresses and hex payloads."""

from __future__ import annotations

from typing import Any


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x address (42 chars, any case)."""
    if not isinstance(addr, str):
        return False
    s = addr.strip()
    if len(s) != 42:
        return False
    if not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def is_hex_data(value: Any, *, size: int | None = None) -> bool:
    """Return True if value is 0x-prefixed hex with an even digit count.

    When size is given, the payload must be exactly that many bytes.
    """
    if not isinstance(value, str) or not value.startswith("0x"):
        return False
    body = value[2:]
    if len(body) % 2:
        return False
    if size is not None and len(body) != size * 2:
        return False
    if not body:
        return True
    try:
        int(body, 16)
        return True
    except ValueError:
        return False


def normalize_address(addr: str) -> str:
    """Case-fold an address for use as a lookup key (0x + lowercase hex).

    Raises:
        ValueError: If addr is not a 0x address.
    """
    if not is_hex_address(addr):
        raise ValueError(f"invalid address: {addr!r}")
    return addr.strip().lower()


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address equality; None never matches."""
    if a is None or b is None:
        return False
    return a.strip().lower() == b.strip().lower()


def mask_address(addr: str | None) -> str:
    """Return a masked address for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"
