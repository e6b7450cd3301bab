# -*- coding: utf-8 -*-
"""Tests for Settings loading and bounds."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from deposit_refund_relay.config import Settings


def test_defaults_track_one_token_with_one_unit_minimum() -> None:
    settings = Settings(_env_file=None)

    assert settings.deposits.min_deposit == 1_000_000
    assert settings.deposits.max_retained == 20
    assert settings.deposits.max_log_block_span == 10
    assert settings.chain.token_decimals == 6
    assert settings.relayer.private_key is None


def test_nested_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPOSITS__MIN_DEPOSIT", "500000")
    monkeypatch.setenv("RPC__URL", "http://localhost:8545")
    monkeypatch.setenv("SERVER__PORT", "9000")

    settings = Settings(_env_file=None)

    assert settings.deposits.min_deposit == 500_000
    assert settings.rpc.url == "http://localhost:8545"
    assert settings.server.port == 9000


def test_from_env_accepts_nested_dict_overrides() -> None:
    settings = Settings.from_env(_env_file=None, deposits={"lookback_blocks": 50})

    assert settings.deposits.lookback_blocks == 50


@pytest.mark.parametrize(
    "overrides",
    [
        {"deposits": {"max_retained": 0}},
        {"deposits": {"max_log_block_span": 0}},
        {"relayer": {"gas_limit_multiplier": 0.5}},
        {"server": {"port": 70_000}},
    ],
)
def test_out_of_range_values_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_settings_are_frozen() -> None:
    settings = Settings(_env_file=None)

    with pytest.raises(ValidationError):
        settings.deposits = settings.deposits
