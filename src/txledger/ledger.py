"""Ledger driver: routes transactions to client accounts."""

import logging
from collections import Counter
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from pydantic import BaseModel, Field

from .account import apply, create_account
from .config import ErrorPolicy, LedgerConfig
from .errors import TransactionError, TransactionErrorKind
from .models.account import Account, AccountSnapshot
from .models.transaction import Transaction

logger = logging.getLogger(__name__)


def route(
    accounts: dict[int, Account],
    transaction: Transaction,
    config: Optional[LedgerConfig] = None,
) -> None:
    """Apply a transaction to the account it belongs to.

    Creates the account on the client's first transaction. The stored account
    is replaced only when the transaction is accepted.

    Args:
        accounts: Mapping of client id to account, updated in place
        transaction: Transaction to apply
        config: Ledger policies

    Raises:
        TransactionError: If the transaction is rejected
    """
    existing = accounts.get(transaction.client_id)
    if existing is None:
        updated = create_account(transaction, config)
    else:
        updated = apply(existing, transaction, config)
    accounts[transaction.client_id] = updated


class RunReport(BaseModel):
    """Counts for one pass over a transaction stream."""

    processed: int = Field(default=0, description="Transactions submitted")
    applied: int = Field(default=0, description="Transactions accepted")
    rejected: int = Field(default=0, description="Transactions rejected")
    rejections_by_kind: dict[TransactionErrorKind, int] = Field(default_factory=dict)
    accounts: int = Field(default=0, description="Accounts in the ledger after the run")


class Ledger:
    """Owns the account mapping for a single run.

    Every rejection is recorded in ``rejected`` and passed to ``on_rejected``.
    Then ``config.on_error`` decides: ``continue`` logs a warning and moves on,
    ``abort`` re-raises the ``TransactionError``.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        on_rejected: Optional[Callable[[TransactionError], None]] = None,
    ):
        self.config = config or LedgerConfig()
        self.on_rejected = on_rejected
        self.rejected: list[TransactionError] = []
        self._accounts: dict[int, Account] = {}
        self._processed = 0
        self._applied = 0

    @property
    def accounts(self) -> Mapping[int, Account]:
        """Read-only view of the account mapping."""
        return MappingProxyType(self._accounts)

    def submit(self, transaction: Transaction) -> bool:
        """Route one transaction.

        Returns:
            True if the transaction was applied, False if it was rejected

        Raises:
            TransactionError: If rejected and the error policy is ``abort``
            LedgerOutputError: If ``on_rejected`` cannot record the rejection
        """
        self._processed += 1
        try:
            route(self._accounts, transaction, self.config)
        except TransactionError as e:
            self.rejected.append(e)
            if self.on_rejected is not None:
                self.on_rejected(e)
            if self.config.on_error == ErrorPolicy.ABORT:
                raise
            logger.warning(f"Rejected {transaction}: {e.message}")
            return False

        self._applied += 1
        return True

    def process(self, transactions: Iterable[Transaction]) -> RunReport:
        """Route every transaction in order and report the totals."""
        for transaction in transactions:
            self.submit(transaction)
        return self.report()

    def report(self) -> RunReport:
        counts = Counter(error.kind for error in self.rejected)
        return RunReport(
            processed=self._processed,
            applied=self._applied,
            rejected=len(self.rejected),
            rejections_by_kind=dict(counts),
            accounts=len(self._accounts),
        )

    def snapshot(self, sort: Optional[bool] = None) -> list[AccountSnapshot]:
        """Final balances of every account.

        Args:
            sort: Order by client id ascending; defaults to ``config.sort_output``.
                When false, accounts appear in creation order.
        """
        if sort is None:
            sort = self.config.sort_output
        accounts = self._accounts.values()
        if sort:
            accounts = sorted(accounts, key=lambda account: account.id)
        return [account.snapshot() for account in accounts]
