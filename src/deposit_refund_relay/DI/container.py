# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from deposit_refund_relay.api_server import RelayApi
from deposit_refund_relay.clients.http import AsyncHttpClient
from deposit_refund_relay.clients.rpc_client import RpcClient
from deposit_refund_relay.config import get_settings
from deposit_refund_relay.persistence.repositories.in_memory import (
    InMemoryAccountSessionRepository,
)
from deposit_refund_relay.services.accounts import AccountProvisioningService
from deposit_refund_relay.services.deposits import (
    ChunkedLogFetcher,
    DepositLedgerService,
    DepositWatcherService,
)
from deposit_refund_relay.services.refund import RefundService, RefundValidator
from deposit_refund_relay.services.submission import TransactionSubmitter


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, RPC clients, session registry, services and the API."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    rpc_client = providers.Singleton(
        RpcClient,
        http_client=http_client,
        settings=config,
    )

    session_repository = providers.Singleton(InMemoryAccountSessionRepository)

    log_fetcher = providers.Singleton(
        ChunkedLogFetcher,
        rpc_client=rpc_client,
        settings=config,
    )

    deposit_ledger = providers.Singleton(
        DepositLedgerService,
        rpc_client=rpc_client,
        settings=config,
    )

    deposit_watcher = providers.Singleton(
        DepositWatcherService,
        fetcher=log_fetcher,
        ledger=deposit_ledger,
        rpc_client=rpc_client,
        settings=config,
    )

    transaction_submitter = providers.Singleton(
        TransactionSubmitter,
        rpc_client=rpc_client,
        settings=config,
    )

    refund_validator = providers.Singleton(
        RefundValidator,
        session_repository=session_repository,
        settings=config,
    )

    refund_service = providers.Singleton(
        RefundService,
        validator=refund_validator,
        submitter=transaction_submitter,
        ledger=deposit_ledger,
    )

    account_provisioning = providers.Singleton(
        AccountProvisioningService,
        rpc_client=rpc_client,
        submitter=transaction_submitter,
        session_repository=session_repository,
        watcher=deposit_watcher,
        settings=config,
    )

    relay_api = providers.Singleton(
        RelayApi,
        settings=config,
        session_repository=session_repository,
        watcher=deposit_watcher,
        refund_service=refund_service,
        provisioning=account_provisioning,
    )
