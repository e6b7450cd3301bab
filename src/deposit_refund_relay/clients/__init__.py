"""HTTP and JSON-RPC clients."""

from deposit_refund_relay.clients.http import AsyncHttpClient
from deposit_refund_relay.clients.rpc_client import RpcClient

__all__ = [
    "AsyncHttpClient",
    "RpcClient",
]
