"""Account state machine.

``apply`` takes an account and one transaction and returns the account after
the transaction, or raises ``TransactionError``. Every check runs before the
first mutation, so a rejected transaction leaves balances, lock status and
history exactly as they were. The caller hands the account over and stores
whatever comes back.
"""

import logging
from decimal import Decimal
from typing import Optional

from .amount import add4, sub4, within_limit
from .config import FirstTransactionPolicy, LedgerConfig, UnknownReferencePolicy
from .errors import TransactionError, TransactionErrorKind
from .models.account import Account, DisputeState
from .models.transaction import Transaction, TransactionKind

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = LedgerConfig()


def create_account(
    first_transaction: Transaction,
    config: Optional[LedgerConfig] = None,
) -> Account:
    """Create an account for a client and apply its first transaction.

    Args:
        first_transaction: The first transaction ever seen for the client
        config: Ledger policies (default: strict first transaction, reject unknown ids)

    Returns:
        The new account with the transaction applied

    Raises:
        TransactionError: FIRST_TRANSACTION_NOT_DEPOSIT under the strict policy,
            or whatever ``apply`` raises
    """
    config = config or _DEFAULT_CONFIG
    account = Account(id=first_transaction.client_id)

    if (
        config.first_transaction == FirstTransactionPolicy.STRICT
        and first_transaction.kind != TransactionKind.DEPOSIT
    ):
        raise TransactionError(
            TransactionErrorKind.FIRST_TRANSACTION_NOT_DEPOSIT,
            first_transaction,
            account.snapshot(),
        )

    return apply(account, first_transaction, config)


def apply(
    account: Account,
    transaction: Transaction,
    config: Optional[LedgerConfig] = None,
) -> Account:
    """Apply one transaction to an account.

    Raises:
        TransactionError: If the transaction is rejected; the account is unchanged
    """
    config = config or _DEFAULT_CONFIG

    if account.locked:
        raise _reject(TransactionErrorKind.ACCOUNT_LOCKED, account, transaction)

    if transaction.kind == TransactionKind.DEPOSIT:
        return _apply_deposit(account, transaction)
    if transaction.kind == TransactionKind.WITHDRAWAL:
        return _apply_withdrawal(account, transaction)
    if transaction.kind == TransactionKind.DISPUTE:
        return _apply_dispute(account, transaction, config)
    if transaction.kind == TransactionKind.RESOLVE:
        return _apply_resolve(account, transaction, config)
    return _apply_chargeback(account, transaction, config)


def _reject(kind: TransactionErrorKind, account: Account, transaction: Transaction) -> TransactionError:
    return TransactionError(kind, transaction, account.snapshot())


def _required_amount(account: Account, transaction: Transaction) -> Decimal:
    if transaction.amount is None:
        raise _reject(TransactionErrorKind.MISSING_REQUIRED_AMOUNT, account, transaction)
    if transaction.amount <= 0:
        raise _reject(TransactionErrorKind.NON_POSITIVE_AMOUNT, account, transaction)
    if not within_limit(transaction.amount):
        raise _reject(TransactionErrorKind.AMOUNT_OUT_OF_RANGE, account, transaction)
    return transaction.amount


def _check_no_amount(account: Account, transaction: Transaction) -> None:
    if transaction.amount is not None:
        raise _reject(TransactionErrorKind.HAS_MEANINGLESS_AMOUNT, account, transaction)


def _referenced_amount(
    account: Account,
    transaction: Transaction,
    config: LedgerConfig,
) -> Optional[Decimal]:
    """Amount of the deposit/withdrawal a transaction points at.

    Returns None when the reference is unknown and the policy says to ignore it.
    An id opened by an ignored reference has no amount and counts as unknown.
    """
    amount = account.reference_amount(transaction.id)
    if amount is not None:
        return amount
    if config.unknown_reference == UnknownReferencePolicy.REJECT:
        raise _reject(TransactionErrorKind.INVALID_ID_REFERENCED, account, transaction)
    logger.debug(f"Ignoring {transaction.kind.value} of unknown tx {transaction.id}")
    return None


def _log(account: Account, transaction: Transaction) -> None:
    """Log the transaction alongside any related transactions."""
    account.history.setdefault(transaction.id, []).append(transaction)


def _apply_deposit(account: Account, transaction: Transaction) -> Account:
    amount = _required_amount(account, transaction)

    available = add4(account.available, amount)
    total = add4(account.total, amount)
    account.available, account.total = available, total
    _log(account, transaction)
    return account


def _apply_withdrawal(account: Account, transaction: Transaction) -> Account:
    amount = _required_amount(account, transaction)
    if amount > account.available:
        raise _reject(TransactionErrorKind.INSUFFICIENT_FUNDS, account, transaction)

    available = sub4(account.available, amount)
    total = sub4(account.total, amount)
    account.available, account.total = available, total
    _log(account, transaction)
    return account


def _apply_dispute(account: Account, transaction: Transaction, config: LedgerConfig) -> Account:
    """Move the referenced amount from available to held.

    The referenced transaction may be a withdrawal; its amount is moved the
    same way as a deposit's.
    """
    _check_no_amount(account, transaction)
    amount = _referenced_amount(account, transaction, config)

    if amount is not None:
        available = sub4(account.available, amount)
        held = add4(account.held, amount)
        account.available, account.held = available, held
    _log(account, transaction)
    return account


def _apply_resolve(account: Account, transaction: Transaction, config: LedgerConfig) -> Account:
    """Release held funds back to available if the reference is under dispute."""
    _check_no_amount(account, transaction)
    amount = _referenced_amount(account, transaction, config)

    if amount is not None and account.dispute_state(transaction.id) == DisputeState.DISPUTED:
        held = sub4(account.held, amount)
        available = add4(account.available, amount)
        account.held, account.available = held, available
    _log(account, transaction)
    return account


def _apply_chargeback(account: Account, transaction: Transaction, config: LedgerConfig) -> Account:
    """Remove held funds from the account and lock it if the reference is under dispute."""
    _check_no_amount(account, transaction)
    amount = _referenced_amount(account, transaction, config)

    if amount is not None and account.dispute_state(transaction.id) == DisputeState.DISPUTED:
        held = sub4(account.held, amount)
        total = sub4(account.total, amount)
        account.held, account.total, account.locked = held, total, True
    _log(account, transaction)
    return account
