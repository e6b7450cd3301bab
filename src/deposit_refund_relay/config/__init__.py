"""Configuration subpackage."""

from deposit_refund_relay.config.config import (
    AppSettings,
    ChainSettings,
    DepositSettings,
    LoggingSettings,
    RelayerSettings,
    RpcSettings,
    ServerSettings,
    Settings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "ChainSettings",
    "DepositSettings",
    "LoggingSettings",
    "RelayerSettings",
    "RpcSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
