"""Chain JSON-RPC client."""

from deposit_refund_relay.clients.rpc_client.rpc_client import (
    RpcClient,
    from_hex_quantity,
    to_hex_quantity,
)
from deposit_refund_relay.clients.rpc_client.schema import (
    BlockSchema,
    LogSchema,
    ReceiptSchema,
)

__all__ = [
    "BlockSchema",
    "LogSchema",
    "ReceiptSchema",
    "RpcClient",
    "from_hex_quantity",
    "to_hex_quantity",
]
