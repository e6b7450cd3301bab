"""Models for transaction submission."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from deposit_refund_relay.clients.rpc_client.schema import ReceiptSchema


class SubmissionStatus(str, Enum):
    """Final outcome of a submission."""

    CONFIRMED = "confirmed"
    SIMULATION_FAILED = "simulation_failed"
    """Dry run failed; nothing was broadcast."""
    REVERTED = "reverted"
    """Mined, but execution reverted (or the user operation inside it failed)."""
    TRANSPORT_FAILED = "transport_failed"
    """The node could not be reached, rejected the broadcast, or no receipt arrived in time."""


@dataclass(frozen=True, slots=True)
class PreparedTransaction:
    """A simulated call, ready to be signed and broadcast."""

    to: str
    data: bytes
    value: int
    gas_limit: int


@dataclass
class SubmissionResult:
    """Result of simulate -> broadcast -> wait for receipt."""

    status: SubmissionStatus = SubmissionStatus.TRANSPORT_FAILED
    tx_hash: str | None = None
    block_number: int | None = None
    error: str | None = None
    receipt: ReceiptSchema | None = None

    @property
    def confirmed(self) -> bool:
        return self.status == SubmissionStatus.CONFIRMED
