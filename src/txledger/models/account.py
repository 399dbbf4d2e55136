"""Pydantic models for client accounts."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..amount import ZERO
from .transaction import Transaction, TransactionKind


class DisputeState(str, Enum):
    """Dispute lifecycle of a referenced deposit or withdrawal.

    Derived from the kind of the last entry logged under the reference id.
    """

    UNDISPUTED = "UNDISPUTED"
    DISPUTED = "DISPUTED"
    RESOLVED = "RESOLVED"
    CHARGED_BACK = "CHARGED_BACK"


_STATE_BY_LAST_KIND = {
    TransactionKind.DEPOSIT: DisputeState.UNDISPUTED,
    TransactionKind.WITHDRAWAL: DisputeState.UNDISPUTED,
    TransactionKind.DISPUTE: DisputeState.DISPUTED,
    TransactionKind.RESOLVE: DisputeState.RESOLVED,
    TransactionKind.CHARGEBACK: DisputeState.CHARGED_BACK,
}


class AccountSnapshot(BaseModel):
    """Balances-only view of an account.

    Used as the output row and as the diagnostics payload of rejected
    transactions.
    """

    client: int = Field(description="Client id")
    available: Decimal = Field(description="Funds available for withdrawal")
    held: Decimal = Field(description="Funds held by open disputes")
    total: Decimal = Field(description="available + held")
    locked: bool = Field(description="True once a chargeback has been applied")

    model_config = {"frozen": True}


class Account(BaseModel):
    """A client account with balances, lock status and transaction history.

    ``history`` maps a deposit/withdrawal id to every transaction logged
    against it, in arrival order. The first element is always the entry that
    opened the id.
    """

    id: int = Field(description="Client id, fixed by the first transaction")
    available: Decimal = Field(default=ZERO)
    held: Decimal = Field(default=ZERO)
    total: Decimal = Field(default=ZERO)
    locked: bool = Field(default=False)
    history: dict[int, list[Transaction]] = Field(default_factory=dict)

    model_config = {"frozen": False}

    def dispute_state(self, tx_id: int) -> Optional[DisputeState]:
        """Return the dispute state of a referenced id, or None if unknown."""
        entries = self.history.get(tx_id)
        if not entries:
            return None
        return _STATE_BY_LAST_KIND[entries[-1].kind]

    def reference_amount(self, tx_id: int) -> Optional[Decimal]:
        """Amount of the transaction that opened ``tx_id``, if there is one."""
        entries = self.history.get(tx_id)
        if not entries:
            return None
        return entries[0].amount

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client=self.id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )
