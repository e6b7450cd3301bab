# -*- coding: utf-8 -*-
"""
Entry point for the deposit refund relay.

Orchestrates: logging, settings, container, HTTP server, shutdown (SIGINT/SIGTERM or CancelledError).
Deposits flow: account create -> session + watcher -> ledger -> refund request -> validator -> submitter.

Run with: python -m deposit_refund_relay.main
"""
from __future__ import annotations

import asyncio
import signal

import structlog
from aiohttp import web

from deposit_refund_relay.DI import Container
from deposit_refund_relay.config import get_settings
from deposit_refund_relay.exceptions import MissingRequiredConfigError
from deposit_refund_relay.logging.config import configure_logging
from deposit_refund_relay.utils import mask_address


def _setup_signals(shutdown_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            pass  # Windows has no add_signal_handler


async def run() -> None:
    settings = get_settings()
    configure_logging(settings)
    logger = structlog.get_logger("main")
    if not settings.relayer.private_key:
        logger.error(
            "main_missing_relayer_key",
            message="RELAYER__PRIVATE_KEY is not set",
        )
        raise MissingRequiredConfigError("RELAYER__PRIVATE_KEY")

    container = Container()
    http_client = container.http_client()
    watcher = container.deposit_watcher()
    submitter = container.transaction_submitter()
    api = container.relay_api()

    shutdown_event = asyncio.Event()
    _setup_signals(shutdown_event)

    runner = web.AppRunner(api.create_app())
    await runner.setup()
    site = web.TCPSite(runner, host=settings.server.host, port=settings.server.port)
    await site.start()
    logger.info(
        "main_server_started",
        host=settings.server.host,
        port=settings.server.port,
        chain_id=settings.chain.chain_id,
        relayer_masked=mask_address(submitter.relayer_address),
        token_masked=mask_address(settings.chain.token_address),
    )

    try:
        await shutdown_event.wait()
    except asyncio.CancelledError:
        logger.info("main_shutdown_cancelled")
        raise
    finally:
        await runner.cleanup()
        await watcher.stop_all()
        await http_client.aclose()
        logger.info("main_shutdown_complete")


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
