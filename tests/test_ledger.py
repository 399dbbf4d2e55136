"""Tests for the ledger driver."""

import logging
from decimal import Decimal
from pathlib import Path

import pytest

from txledger.config import LedgerConfig
from txledger.errors import LedgerOutputError, TransactionError, TransactionErrorKind
from txledger.ledger import Ledger, route
from txledger.models import AccountSnapshot, Transaction, TransactionKind


def tx(kind, client, tx_id, amount=None):
    return Transaction(
        id=tx_id,
        kind=TransactionKind(kind),
        client_id=client,
        amount=None if amount is None else Decimal(amount),
    )


def snapshot_of(ledger, client):
    return ledger.accounts[client].snapshot()


def expected(client, available, held, total, locked=False):
    return AccountSnapshot(
        client=client,
        available=Decimal(available),
        held=Decimal(held),
        total=Decimal(total),
        locked=locked,
    )


# route()


def test_route_creates_account_on_first_deposit():
    accounts = {}
    route(accounts, tx("deposit", 1, 1, "1.0"))

    assert list(accounts) == [1]
    assert accounts[1].available == Decimal("1.0")


def test_route_applies_to_existing_account():
    accounts = {}
    route(accounts, tx("deposit", 1, 1, "1.0"))
    route(accounts, tx("deposit", 1, 2, "2.0"))

    assert accounts[1].total == Decimal("3.0")


def test_route_keeps_clients_separate():
    accounts = {}
    route(accounts, tx("deposit", 1, 1, "1.0"))
    route(accounts, tx("deposit", 2, 2, "5.0"))

    assert accounts[1].total == Decimal("1.0")
    assert accounts[2].total == Decimal("5.0")


def test_route_does_not_create_account_when_first_transaction_rejected():
    accounts = {}
    with pytest.raises(TransactionError) as exc_info:
        route(accounts, tx("withdrawal", 3, 1, "1.0"))

    assert exc_info.value.kind == TransactionErrorKind.FIRST_TRANSACTION_NOT_DEPOSIT
    assert accounts == {}


def test_route_cannot_dispute_another_clients_transaction():
    accounts = {}
    route(accounts, tx("deposit", 1, 1, "1.0"))
    route(accounts, tx("deposit", 2, 2, "1.0"))

    with pytest.raises(TransactionError) as exc_info:
        route(accounts, tx("dispute", 2, 1))
    assert exc_info.value.kind == TransactionErrorKind.INVALID_ID_REFERENCED
    assert accounts[1].held == 0


# End-to-end scenarios


def test_scenario_single_deposit():
    ledger = Ledger()
    ledger.process([tx("deposit", 1, 1, "1.0")])

    assert snapshot_of(ledger, 1) == expected(1, "1.0", "0", "1.0")


def test_scenario_dispute():
    ledger = Ledger()
    ledger.process([
        tx("deposit", 2, 2, "2.0"),
        tx("deposit", 2, 3, "1.3"),
        tx("dispute", 2, 2),
    ])

    assert snapshot_of(ledger, 2) == expected(2, "1.3", "2.0", "3.3")


def test_scenario_dispute_then_resolve():
    ledger = Ledger()
    ledger.process([
        tx("deposit", 2, 2, "2.0"),
        tx("deposit", 2, 3, "1.3"),
        tx("dispute", 2, 2),
        tx("resolve", 2, 2),
    ])

    assert snapshot_of(ledger, 2) == expected(2, "3.3", "0", "3.3")


def test_scenario_chargeback_locks_account():
    ledger = Ledger()
    report = ledger.process([
        tx("deposit", 4, 4, "5.0"),
        tx("dispute", 4, 4),
        tx("chargeback", 4, 4),
    ])
    assert report.rejected == 0
    assert snapshot_of(ledger, 4) == expected(4, "0", "0", "0", locked=True)

    before = ledger.accounts[4].model_dump()
    assert ledger.submit(tx("deposit", 4, 40, "1.0")) is False
    assert ledger.rejected[-1].kind == TransactionErrorKind.ACCOUNT_LOCKED
    assert ledger.accounts[4].model_dump() == before


def test_scenario_first_withdrawal_without_funds(lenient_config):
    ledger = Ledger(lenient_config)

    assert ledger.submit(tx("withdrawal", 5, 5, "10.0")) is False
    assert ledger.rejected[-1].kind == TransactionErrorKind.INSUFFICIENT_FUNDS
    assert ledger.rejected[-1].account == expected(5, "0", "0", "0")
    assert 5 not in ledger.accounts


def test_scenario_withdrawal_without_funds():
    ledger = Ledger()
    ledger.process([
        tx("deposit", 5, 1, "1.0"),
        tx("withdrawal", 5, 2, "1.0"),
    ])
    assert snapshot_of(ledger, 5) == expected(5, "0", "0", "0")

    assert ledger.submit(tx("withdrawal", 5, 5, "10.0")) is False
    assert ledger.rejected[-1].kind == TransactionErrorKind.INSUFFICIENT_FUNDS
    assert snapshot_of(ledger, 5) == expected(5, "0", "0", "0")


def test_scenario_dispute_of_unseen_id():
    ledger = Ledger()
    ledger.process([tx("deposit", 6, 1, "2.0")])
    before = ledger.accounts[6].model_dump()

    assert ledger.submit(tx("dispute", 6, 999)) is False
    assert ledger.rejected[-1].kind == TransactionErrorKind.INVALID_ID_REFERENCED
    assert ledger.accounts[6].model_dump() == before


# Error policy


def test_continue_policy_records_and_keeps_going(caplog):
    ledger = Ledger()
    with caplog.at_level(logging.WARNING, logger="txledger"):
        report = ledger.process([
            tx("deposit", 1, 1, "1.0"),
            tx("withdrawal", 1, 2, "5.0"),
            tx("deposit", 1, 3, "2.0"),
        ])

    assert report.processed == 3
    assert report.applied == 2
    assert report.rejected == 1
    assert report.rejections_by_kind == {TransactionErrorKind.INSUFFICIENT_FUNDS: 1}
    assert report.accounts == 1
    assert ledger.accounts[1].total == Decimal("3.0")
    assert "Insufficient funds" in caplog.text


def test_abort_policy_raises_first_rejection(abort_config):
    ledger = Ledger(abort_config)
    with pytest.raises(TransactionError) as exc_info:
        ledger.process([
            tx("deposit", 1, 1, "1.0"),
            tx("withdrawal", 1, 2, "5.0"),
            tx("deposit", 1, 3, "2.0"),
        ])

    assert exc_info.value.kind == TransactionErrorKind.INSUFFICIENT_FUNDS
    assert ledger.accounts[1].total == Decimal("1.0")
    assert len(ledger.rejected) == 1


def test_on_rejected_callback_receives_errors():
    seen = []
    ledger = Ledger(on_rejected=seen.append)
    ledger.process([
        tx("dispute", 1, 1),
        tx("deposit", 1, 1, "0"),
    ])

    assert [error.kind for error in seen] == [
        TransactionErrorKind.FIRST_TRANSACTION_NOT_DEPOSIT,
        TransactionErrorKind.NON_POSITIVE_AMOUNT,
    ]
    assert dict(ledger.accounts) == {}


def test_oversized_deposit_is_rejected_without_touching_balances():
    ledger = Ledger()
    ledger.process([
        tx("deposit", 1, 1, "2.5"),
        tx("deposit", 1, 2, "1e25"),
    ])

    assert [error.kind for error in ledger.rejected] == [TransactionErrorKind.AMOUNT_OUT_OF_RANGE]
    assert snapshot_of(ledger, 1) == expected(1, "2.5", "0", "2.5")


def test_failing_rejection_callback_stops_the_run():
    def unwritable(error):
        raise LedgerOutputError(Path("rejections.jsonl"), "Read-only file system")

    ledger = Ledger(on_rejected=unwritable)

    with pytest.raises(LedgerOutputError):
        ledger.process([
            tx("deposit", 1, 1, "1.0"),
            tx("withdrawal", 1, 2, "5.0"),
            tx("deposit", 1, 3, "2.0"),
        ])

    assert ledger.accounts[1].total == Decimal("1.0")


# Snapshot accessor


def test_snapshot_sorted_by_client_by_default():
    ledger = Ledger()
    ledger.process([
        tx("deposit", 3, 1, "1.0"),
        tx("deposit", 1, 2, "1.0"),
        tx("deposit", 2, 3, "1.0"),
    ])

    assert [row.client for row in ledger.snapshot()] == [1, 2, 3]


def test_snapshot_in_creation_order_when_unsorted():
    ledger = Ledger(LedgerConfig(sort_output=False))
    ledger.process([
        tx("deposit", 3, 1, "1.0"),
        tx("deposit", 1, 2, "1.0"),
        tx("deposit", 2, 3, "1.0"),
    ])

    assert [row.client for row in ledger.snapshot()] == [3, 1, 2]
    assert [row.client for row in ledger.snapshot(sort=True)] == [1, 2, 3]


def test_accounts_view_is_read_only():
    ledger = Ledger()
    ledger.process([tx("deposit", 1, 1, "1.0")])

    with pytest.raises(TypeError):
        ledger.accounts[2] = ledger.accounts[1]
