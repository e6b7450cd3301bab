# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, RPC__URL.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "deposit-refund-relay"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    # Per-target levels (only the 5 standard levels)
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Local outputs
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/refund_relay.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # Main output format: JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class RpcSettings(BaseSettings):
    """Configuration for the chain JSON-RPC endpoint."""

    model_config = SettingsConfigDict(extra="ignore")

    url: str = Field(
        default="https://ethereum-sepolia-rpc.publicnode.com",
        description="JSON-RPC endpoint of the chain holding the managed accounts.",
    )
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="Per-request timeout in seconds.",
    )
    max_retries: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Maximum number of attempts for a failed transport request.",
    )
    receipt_timeout_seconds: float = Field(
        default=120.0,
        ge=1.0,
        le=900.0,
        description="Upper bound on waiting for a transaction receipt.",
    )
    receipt_poll_seconds: float = Field(
        default=2.0,
        ge=0.05,
        le=60.0,
        description="Interval between receipt polls.",
    )


class ChainSettings(BaseSettings):
    """Contract addresses and token parameters (from env CHAIN__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    chain_id: int = Field(default=11155111, description="Chain ID (11155111 for Sepolia).")
    token_address: str = Field(
        default="0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
        description="ERC-20 token whose transfers are tracked and refunded (USDC).",
    )
    token_decimals: int = Field(default=6, ge=0, le=36)
    entrypoint_address: str = Field(
        default="0x4337084d9e255ff0702461cf8895ce9e3b5ff108",
        description="ERC-4337 EntryPoint (v0.8) that executes user operations.",
    )
    factory_address: str = Field(
        default="0x7F3505c23FD8ef643447D528E34beb3aF90C4A47",
        description="Factory that clones and initializes WebAuthn smart accounts.",
    )


class RelayerSettings(BaseSettings):
    """Relayer wallet that pays for deployments and bundles refunds (from env RELAYER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    private_key: Optional[str] = Field(default=None, description="Relayer EOA private key.")
    account_funding_wei: int = Field(
        default=5_000_000_000_000_000,
        ge=0,
        description="Native currency sent to every newly deployed account.",
    )
    gas_limit_multiplier: float = Field(
        default=1.2,
        ge=1.0,
        le=5.0,
        description="Safety factor applied to eth_estimateGas.",
    )


class DepositSettings(BaseSettings):
    """Deposit tracking and refund eligibility (from env DEPOSITS__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    min_deposit: int = Field(
        default=1_000_000,
        ge=0,
        description="Minimum refundable deposit in token base units (1 USDC).",
    )
    max_retained: int = Field(
        default=20,
        ge=1,
        le=10_000,
        description="Maximum number of deposits kept per account (newest first).",
    )
    lookback_blocks: int = Field(
        default=2_000,
        ge=0,
        description="Blocks before head scanned on the first backfill of an account.",
    )
    max_log_block_span: int = Field(
        default=10,
        ge=1,
        description="Largest block span the RPC accepts per eth_getLogs call.",
    )
    poll_seconds: float = Field(
        default=5.0,
        ge=0.1,
        le=300.0,
        description="Polling interval of live deposit watchers.",
    )


class ServerSettings(BaseSettings):
    """HTTP server configuration (from env SERVER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    host: str = "0.0.0.0"
    port: int = Field(default=8787, ge=1, le=65535)
    cors_allow_origin: Optional[str] = Field(
        default="*",
        description="Value of Access-Control-Allow-Origin; empty disables CORS headers.",
    )


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, DEPOSITS__MIN_DEPOSIT.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    rpc: RpcSettings = Field(default_factory=RpcSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    relayer: RelayerSettings = Field(default_factory=RelayerSettings)
    deposits: DepositSettings = Field(default_factory=DepositSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.:
        - from_env(deposits={"min_deposit": 500_000})
        - from_env(rpc={"url": "http://localhost:8545"})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from deposit_refund_relay.config import get_settings

        settings = get_settings()
        span = settings.deposits.max_log_block_span
    """
    return Settings()
