# -*- coding: utf-8 -*-
"""Unit tests for InMemoryAccountSessionRepository (session registry)."""

from __future__ import annotations

from collections.abc import Callable

from deposit_refund_relay.models.account_session import WatcherState
from deposit_refund_relay.models.deposit_record import DepositRecord
from deposit_refund_relay.persistence.repositories.in_memory import (
    InMemoryAccountSessionRepository,
)


async def test_upsert_creates_session_and_get_is_case_insensitive(
    session_repo: InMemoryAccountSessionRepository,
    account_address: str,
) -> None:
    created = await session_repo.upsert(account_address, "cred-a")

    assert await session_repo.get(account_address.upper().replace("0X", "0x")) is created
    assert created.credential_id == "cred-a"
    assert created.watcher_state == WatcherState.IDLE
    assert len(session_repo) == 1


async def test_upsert_existing_rebinds_credential_and_keeps_ledger(
    session_repo: InMemoryAccountSessionRepository,
    account_address: str,
    deposit_record_factory: Callable[..., DepositRecord],
) -> None:
    first = await session_repo.upsert(account_address, "cred-a")
    first.deposits.append(deposit_record_factory())
    first.advance_cursor(42)

    second = await session_repo.upsert(account_address.upper().replace("0X", "0x"), "cred-b")

    assert second is first
    assert second.credential_id == "cred-b"
    assert len(second.deposits) == 1
    assert second.last_synced_block == 42
    assert len(session_repo) == 1


async def test_get_returns_none_for_unknown_or_invalid_address(
    session_repo: InMemoryAccountSessionRepository,
) -> None:
    assert await session_repo.get("0x" + "12" * 20) is None
    assert await session_repo.get("nope") is None


async def test_list_all_keeps_registration_order_across_rebinds(
    session_repo: InMemoryAccountSessionRepository,
) -> None:
    a = await session_repo.upsert("0x" + "01" * 20, "cred-a")
    b = await session_repo.upsert("0x" + "02" * 20, "cred-b")
    await session_repo.upsert("0x" + "01" * 20, "cred-a2")

    listed = await session_repo.list_all()

    assert [s.credential_id for s in listed] == ["cred-a2", "cred-b"]
    assert listed[0] is a
    assert listed[1] is b
