# -*- coding: utf-8 -*-
"""Unit tests for the chunked log fetcher."""

from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from deposit_refund_relay.clients.rpc_client import LogSchema
from deposit_refund_relay.config import Settings
from deposit_refund_relay.contracts.abi import TRANSFER_TOPIC, topic_for_address
from deposit_refund_relay.exceptions import RpcAPIError
from deposit_refund_relay.services.deposits.log_fetcher import ChunkedLogFetcher, iter_block_ranges


@pytest.mark.parametrize(
    ("from_block", "to_block", "span"),
    [(0, 0, 10), (0, 9, 10), (0, 10, 10), (5, 37, 10), (100, 2100, 10), (3, 4, 1), (7, 50, 7)],
)
def test_block_ranges_are_contiguous_and_cover_the_range(from_block: int, to_block: int, span: int) -> None:
    ranges = list(iter_block_ranges(from_block, to_block, span))

    assert ranges[0][0] == from_block
    assert ranges[-1][1] == to_block
    for (start, end), (next_start, _) in zip(ranges, ranges[1:]):
        assert next_start == end + 1
    covered = [block for start, end in ranges for block in range(start, end + 1)]
    assert covered == list(range(from_block, to_block + 1))
    assert all(end - start + 1 <= span for start, end in ranges)


def test_block_ranges_empty_when_from_after_to() -> None:
    assert list(iter_block_ranges(11, 10, 10)) == []


def test_block_ranges_reject_non_positive_span() -> None:
    with pytest.raises(ValueError):
        list(iter_block_ranges(0, 10, 0))


def _fetcher(settings: Settings, get_logs: AsyncMock) -> ChunkedLogFetcher:
    return ChunkedLogFetcher(SimpleNamespace(get_logs=get_logs), settings)  # type: ignore[arg-type]


async def test_fetch_concatenates_chunks_in_order_with_one_query_per_chunk(
    settings: Settings,
    account_address: str,
    token_address: str,
    transfer_log_factory: Callable[..., LogSchema],
) -> None:
    # One log per block; a single unbounded query over [3, 27] would return them in block order.
    async def get_logs(**kwargs: Any) -> list[LogSchema]:
        return [
            transfer_log_factory(block_number=block)
            for block in range(kwargs["from_block"], kwargs["to_block"] + 1)
        ]

    mock = AsyncMock(side_effect=get_logs)
    fetcher = _fetcher(settings, mock)

    logs = await fetcher.fetch_raw_logs(account_address, 3, 27)

    assert [int(log["blockNumber"], 16) for log in logs] == list(range(3, 28))
    ranges = [(c.kwargs["from_block"], c.kwargs["to_block"]) for c in mock.await_args_list]
    assert ranges == [(3, 12), (13, 22), (23, 27)]
    first = mock.await_args_list[0].kwargs
    assert first["address"] == token_address
    assert first["topics"] == [TRANSFER_TOPIC, None, topic_for_address(account_address)]


async def test_fetch_returns_nothing_without_querying_for_empty_range(
    settings: Settings,
    account_address: str,
) -> None:
    mock = AsyncMock(return_value=[])
    fetcher = _fetcher(settings, mock)

    assert await fetcher.fetch_raw_logs(account_address, 20, 19) == []
    mock.assert_not_awaited()


async def test_fetch_fails_whole_operation_when_a_chunk_fails(
    settings: Settings,
    account_address: str,
    transfer_log_factory: Callable[..., LogSchema],
) -> None:
    mock = AsyncMock(side_effect=[[transfer_log_factory()], RpcAPIError("boom")])
    fetcher = _fetcher(settings, mock)

    with pytest.raises(RpcAPIError):
        await fetcher.fetch_raw_logs(account_address, 0, 15)


async def test_fetch_transfers_skips_undecodable_logs(
    settings: Settings,
    account_address: str,
    transfer_log_factory: Callable[..., LogSchema],
) -> None:
    good = transfer_log_factory(amount=5, log_index=1)
    removed = transfer_log_factory(log_index=2, removed=True)
    fetcher = _fetcher(settings, AsyncMock(return_value=[good, removed]))

    transfers = await fetcher.fetch_transfers(account_address, 50, 50)

    assert [(t.amount, t.log_index) for t in transfers] == [(5, 1)]
