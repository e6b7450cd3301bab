# -*- coding: utf-8 -*-
"""Unit tests for address and hex validation helpers."""

from __future__ import annotations

import pytest

from deposit_refund_relay.utils.validation import (
    is_hex_address,
    is_hex_data,
    mask_address,
    normalize_address,
    same_address,
)


def test_is_hex_address_accepts_any_case() -> None:
    assert is_hex_address("0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238")
    assert is_hex_address("0x1c7d4b196cb0c7b01d743fbc6116a902379c7238")


@pytest.mark.parametrize(
    "value",
    [None, 123, "", "0x123", "1c7d4b196cb0c7b01d743fbc6116a902379c7238aa", "0x" + "zz" * 20],
)
def test_is_hex_address_rejects_invalid_values(value: object) -> None:
    assert is_hex_address(value) is False


def test_is_hex_data_checks_even_length_and_size() -> None:
    assert is_hex_data("0x")
    assert is_hex_data("0xdeadbeef")
    assert is_hex_data("0x" + "00" * 32, size=32)
    assert not is_hex_data("0xabc")
    assert not is_hex_data("deadbeef")
    assert not is_hex_data("0x" + "00" * 31, size=32)
    assert not is_hex_data("0xgg")


def test_normalize_address_lowercases_and_rejects_garbage() -> None:
    assert normalize_address(" 0xAbCdEf0000000000000000000000000000000001 ") == (
        "0xabcdef0000000000000000000000000000000001"
    )
    with pytest.raises(ValueError):
        normalize_address("not-an-address")


def test_same_address_ignores_case_and_never_matches_none() -> None:
    assert same_address("0xABC", "0xabc")
    assert not same_address(None, "0xabc")
    assert not same_address(None, None)


def test_mask_address_keeps_prefix_and_suffix() -> None:
    assert mask_address("0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238") == "0x1c7D...7238"
    assert mask_address(None) == "***"
    assert mask_address("0x12") == "***"
