"""JSON-RPC payload types (Ethereum execution API). Keys match the wire format (camelCase, hex quantities)."""

from __future__ import annotations

from typing import TypedDict


class LogSchema(TypedDict, total=False):
    """eth_getLogs item / receipt log."""

    address: str
    topics: list[str]
    data: str
    blockNumber: str
    blockHash: str
    transactionHash: str
    transactionIndex: str
    logIndex: str
    removed: bool


class BlockSchema(TypedDict, total=False):
    """eth_getBlockByNumber result (header fields only, no full transactions)."""

    number: str
    hash: str
    parentHash: str
    timestamp: str
    baseFeePerGas: str
    gasLimit: str
    gasUsed: str


class ReceiptSchema(TypedDict, total=False):
    """eth_getTransactionReceipt result."""

    transactionHash: str
    blockNumber: str
    blockHash: str
    status: str
    """0x1 success, 0x0 reverted."""
    gasUsed: str
    effectiveGasPrice: str
    contractAddress: str | None
    logs: list[LogSchema]

