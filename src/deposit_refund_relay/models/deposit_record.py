"""DepositRecord: one observed token transfer into a managed account.

Identity is (tx_hash, log_index). Readiness is decided once, at creation, from the
minimum deposit threshold in force at that moment; it is never recomputed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from deposit_refund_relay.utils.dedupe import deposit_key


@dataclass(frozen=True, slots=True)
class DepositRecord:
    """An inbound transfer and its refund state."""

    sender: str
    """Address that sent the tokens; the only acceptable refund recipient."""
    amount: int
    """Token base units (e.g. 6 decimals for USDC)."""
    tx_hash: str
    log_index: int
    """Position of the Transfer log inside the block."""
    block_number: int
    block_timestamp: int
    """Unix seconds of the block that included the transfer."""
    ready: bool
    """True when amount >= minimum deposit at creation time."""
    refunded: bool = False
    refund_tx_hash: str | None = None
    """Settlement transaction of the refund, set together with refunded."""

    @property
    def key(self) -> tuple[str, int]:
        return deposit_key(self.tx_hash, self.log_index)

    def with_refunded(self, refund_tx_hash: str) -> DepositRecord:
        """Return a copy marked refunded. A record can be refunded only once.

        Raises:
            ValueError: If the record is already refunded.
        """
        if self.refunded:
            raise ValueError(f"deposit {self.tx_hash}:{self.log_index} already refunded")
        return replace(self, refunded=True, refund_tx_hash=refund_tx_hash)

    @classmethod
    def create(
        cls,
        *,
        sender: str,
        amount: int,
        tx_hash: str,
        log_index: int,
        block_number: int,
        block_timestamp: int,
        min_deposit: int,
    ) -> DepositRecord:
        """Create a new, unrefunded record and classify it against min_deposit."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        return cls(
            sender=sender,
            amount=amount,
            tx_hash=tx_hash,
            log_index=log_index,
            block_number=block_number,
            block_timestamp=block_timestamp,
            ready=amount >= min_deposit,
        )
