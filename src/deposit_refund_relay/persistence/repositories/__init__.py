# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory)."""

from deposit_refund_relay.persistence.repositories.interfaces import (
    IAccountSessionRepository,
)
from deposit_refund_relay.persistence.repositories.in_memory import (
    InMemoryAccountSessionRepository,
)

__all__ = [
    "IAccountSessionRepository",
    "InMemoryAccountSessionRepository",
]
