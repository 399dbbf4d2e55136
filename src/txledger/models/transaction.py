"""Pydantic models for ledger transactions."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionKind(str, Enum):
    """Transaction types, valued by their lowercase wire names."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        """Whether this kind moves funds given on the transaction itself."""
        return self in (TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL)


class Transaction(BaseModel):
    """A single ledger event.

    Deposits and withdrawals open a history entry keyed by ``id``.
    Disputes, resolves and chargebacks reference an earlier ``id`` instead.
    """

    id: int = Field(ge=0, le=MAX_TRANSACTION_ID, description="Transaction identifier")
    kind: TransactionKind = Field(description="Transaction type")
    client_id: int = Field(ge=0, le=MAX_CLIENT_ID, description="Owning client account")
    amount: Optional[Decimal] = Field(
        default=None,
        description="Amount for deposits and withdrawals; absent otherwise",
    )

    model_config = {"frozen": True}

    def __str__(self) -> str:
        amount = "-" if self.amount is None else str(self.amount)
        return f"{self.kind.value} client={self.client_id} tx={self.id} amount={amount}"
