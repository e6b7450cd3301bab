# -*- coding: utf-8 -*-
"""HTTP API server (aiohttp.web)."""

from deposit_refund_relay.api_server.app import RelayApi, error_response

__all__ = ["RelayApi", "error_response"]
