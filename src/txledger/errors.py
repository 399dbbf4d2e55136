"""Error types for txledger.

Two classes of failure exist:

* ``TransactionError``: a single transaction was rejected by the account
  state machine. The account it targeted is left untouched.
* ``LedgerIOError``: the input could not be read or the output could not be
  written. These always abort the run.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from .models.account import AccountSnapshot
from .models.transaction import Transaction


class TransactionErrorKind(str, Enum):
    """Reasons a transaction can be rejected."""

    NON_POSITIVE_AMOUNT = "NON_POSITIVE_AMOUNT"
    MISSING_REQUIRED_AMOUNT = "MISSING_REQUIRED_AMOUNT"
    HAS_MEANINGLESS_AMOUNT = "HAS_MEANINGLESS_AMOUNT"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INVALID_ID_REFERENCED = "INVALID_ID_REFERENCED"
    FIRST_TRANSACTION_NOT_DEPOSIT = "FIRST_TRANSACTION_NOT_DEPOSIT"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    AMOUNT_OUT_OF_RANGE = "AMOUNT_OUT_OF_RANGE"


ERROR_MESSAGES = {
    TransactionErrorKind.NON_POSITIVE_AMOUNT: "Negative or zero value provided for transaction amount.",
    TransactionErrorKind.MISSING_REQUIRED_AMOUNT: "Deposit or withdrawal without specified amount.",
    TransactionErrorKind.HAS_MEANINGLESS_AMOUNT: "Dispute, resolve, or chargeback with specified amount.",
    TransactionErrorKind.INSUFFICIENT_FUNDS: "Insufficient funds for transaction.",
    TransactionErrorKind.INVALID_ID_REFERENCED: "Dispute, resolve, or chargeback with invalid id.",
    TransactionErrorKind.FIRST_TRANSACTION_NOT_DEPOSIT: "First transaction is not deposit.",
    TransactionErrorKind.ACCOUNT_LOCKED: "Attempted to apply transaction to locked account.",
    TransactionErrorKind.AMOUNT_OUT_OF_RANGE: "Transaction amount exceeds the supported maximum.",
}


class TransactionError(Exception):
    """A transaction rejected by the account state machine.

    Attributes:
        kind: Why the transaction was rejected
        transaction: The rejected transaction
        account: Balances of the target account at the moment of rejection
    """

    def __init__(
        self,
        kind: TransactionErrorKind,
        transaction: Transaction,
        account: AccountSnapshot,
    ):
        self.kind = kind
        self.transaction = transaction
        self.account = account
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.kind]

    @property
    def client_id(self) -> int:
        return self.transaction.client_id

    def __str__(self) -> str:
        acct = self.account
        return (
            f"{self.message} Transaction: {self.transaction}. "
            f"Account: client={acct.client} available={acct.available} "
            f"held={acct.held} total={acct.total} locked={acct.locked}"
        )


class LedgerIOError(Exception):
    """Fatal failure reading transactions or writing accounts."""

    def __init__(self, path: Path, cause: str):
        self.path = path
        self.cause = cause
        super().__init__(f"{path}: {cause}")


class LedgerInputError(LedgerIOError):
    """Unreadable transaction source or malformed record."""

    def __init__(self, path: Path, cause: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            cause = f"line {line_number}: {cause}"
        super().__init__(path, cause)


class LedgerOutputError(LedgerIOError):
    """Unwritable account snapshot sink."""
