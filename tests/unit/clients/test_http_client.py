# -*- coding: utf-8 -*-
"""Unit tests for AsyncHttpClient retry behaviour against a local aiohttp server."""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from deposit_refund_relay.clients.http import AsyncHttpClient
from deposit_refund_relay.config import Settings
from deposit_refund_relay.exceptions import RateLimitError, RpcAPIError


def _fast_settings(max_retries: int) -> Settings:
    return Settings(rpc={"url": "http://rpc.test", "max_retries": max_retries, "timeout_seconds": 5.0})


async def test_post_retries_server_error_then_returns_json() -> None:
    calls: list[str] = []

    async def handler(request: web.Request) -> web.Response:
        body = await request.json()
        calls.append(body["method"])
        if len(calls) == 1:
            return web.Response(status=503)
        return web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": "0xaa36a7"})

    app = web.Application()
    app.router.add_post("/", handler)
    async with TestServer(app) as server:
        async with AsyncHttpClient(_fast_settings(3)) as client:
            result = await client.post(
                str(server.make_url("/")),
                json={"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []},
            )

    assert result["result"] == "0xaa36a7"
    assert calls == ["eth_chainId", "eth_chainId"]


async def test_post_raises_rpc_api_error_after_all_retries() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=500)

    app = web.Application()
    app.router.add_post("/", handler)
    async with TestServer(app) as server:
        async with AsyncHttpClient(_fast_settings(2)) as client:
            with pytest.raises(RpcAPIError) as exc_info:
                await client.post(str(server.make_url("/")), json={"method": "eth_blockNumber"})

    assert exc_info.value.status_code == 500


async def test_post_raises_rate_limit_error_when_every_attempt_is_429() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=429, headers={"Retry-After": "0"})

    app = web.Application()
    app.router.add_post("/", handler)
    async with TestServer(app) as server:
        async with AsyncHttpClient(_fast_settings(1)) as client:
            with pytest.raises(RateLimitError):
                await client.post(str(server.make_url("/")), json={"method": "eth_blockNumber"})


async def test_post_does_not_retry_client_errors() -> None:
    calls: list[int] = []

    async def handler(request: web.Request) -> web.Response:
        calls.append(1)
        return web.Response(status=400, text="bad request")

    app = web.Application()
    app.router.add_post("/", handler)
    async with TestServer(app) as server:
        async with AsyncHttpClient(_fast_settings(4)) as client:
            with pytest.raises(RpcAPIError) as exc_info:
                await client.post(str(server.make_url("/")), json={"method": "eth_call"})

    assert exc_info.value.status_code == 400
    assert not isinstance(exc_info.value, RateLimitError)
    assert len(calls) == 1
