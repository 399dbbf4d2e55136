"""Pydantic models for txledger."""

from .account import Account, AccountSnapshot, DisputeState
from .rejection import RejectionEvent
from .transaction import MAX_CLIENT_ID, MAX_TRANSACTION_ID, Transaction, TransactionKind

__all__ = [
    "Account",
    "AccountSnapshot",
    "DisputeState",
    "RejectionEvent",
    "Transaction",
    "TransactionKind",
    "MAX_CLIENT_ID",
    "MAX_TRANSACTION_ID",
]
