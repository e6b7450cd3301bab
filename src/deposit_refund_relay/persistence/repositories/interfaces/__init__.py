# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/."""

from deposit_refund_relay.persistence.repositories.interfaces.account_session_repository import (
    IAccountSessionRepository,
)

__all__ = ["IAccountSessionRepository"]
