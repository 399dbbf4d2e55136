"""Pydantic models for the rejection log."""

from datetime import datetime

from pydantic import BaseModel, Field

from .account import AccountSnapshot
from .transaction import Transaction


class RejectionEvent(BaseModel):
    """Append-only record of a rejected transaction.

    Written as JSONL, one object per line. Never mutate or delete; only append.
    """

    event_id: str = Field(description="Unique event identifier (uuid4)")
    run_id: str = Field(description="Run identifier (uuid4)")
    ts: datetime = Field(description="Rejection timestamp (ISO8601 UTC)")
    kind: str = Field(description="TransactionErrorKind value")
    client_id: int = Field(description="Client the transaction targeted")
    message: str = Field(description="Human-readable rejection reason")
    transaction: Transaction = Field(description="The rejected transaction")
    account: AccountSnapshot = Field(description="Account balances at rejection time")

    model_config = {"frozen": True}
