"""CSV transaction reader.

Expected header: ``type, client, tx, amount``. Whitespace around fields is
ignored and ``type`` is matched case-insensitively. The ``amount`` column may
be empty (or missing entirely) for disputes, resolves and chargebacks.
"""

import csv
import logging
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from .amount import parse_amount
from .errors import LedgerInputError
from .models.transaction import Transaction, TransactionKind

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def parse_record(row: dict[str, Optional[str]]) -> Transaction:
    """Convert one CSV row into a Transaction.

    Args:
        row: Mapping of lowercase column name to raw field text

    Raises:
        ValueError: If a field is missing or cannot be parsed
    """
    type_text = _clean(row.get("type")).lower()
    try:
        kind = TransactionKind(type_text)
    except ValueError:
        raise ValueError(f"Unknown transaction type: {type_text!r}") from None

    client_text = _clean(row.get("client"))
    tx_text = _clean(row.get("tx"))
    if not client_text or not tx_text:
        raise ValueError("Missing client or tx field")

    try:
        client_id = int(client_text)
        tx_id = int(tx_text)
    except ValueError:
        raise ValueError(f"Non-integer client or tx field: {client_text!r}, {tx_text!r}") from None

    amount_text = _clean(row.get(AMOUNT_COLUMN))
    amount = parse_amount(amount_text) if amount_text else None

    try:
        return Transaction(id=tx_id, kind=kind, client_id=client_id, amount=amount)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise ValueError(f"Out of range field(s): {fields}") from None


def _normalize_header(fieldnames: Optional[list[str]], path: Path) -> list[str]:
    if not fieldnames:
        raise LedgerInputError(path, "empty file, expected a header row", line_number=1)
    header = [name.strip().lower() for name in fieldnames]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise LedgerInputError(path, f"header is missing column(s): {', '.join(missing)}", line_number=1)
    return header


def read_transactions(path: Path) -> Iterator[Transaction]:
    """Stream transactions from a CSV file in file order.

    Args:
        path: CSV file to read

    Yields:
        Parsed transactions

    Raises:
        LedgerInputError: If the file cannot be read or a record is malformed
    """
    try:
        f = open(path, "r", encoding="utf-8-sig", newline="")
    except OSError as e:
        raise LedgerInputError(path, e.strerror or str(e)) from e

    with f:
        reader = csv.DictReader(f, skipinitialspace=True)
        try:
            reader.fieldnames = _normalize_header(reader.fieldnames, path)
            count = 0
            for row in reader:
                if None in row:
                    raise LedgerInputError(path, "too many fields", line_number=reader.line_num)
                if not any(_clean(value) for value in row.values()):
                    # Blank line
                    continue
                try:
                    yield parse_record(row)
                except ValueError as e:
                    raise LedgerInputError(path, str(e), line_number=reader.line_num) from e
                count += 1
        except csv.Error as e:
            raise LedgerInputError(path, str(e), line_number=reader.line_num) from e
        except UnicodeDecodeError as e:
            raise LedgerInputError(path, f"not valid UTF-8 text: {e.reason}") from e

    logger.info(f"Read {count} transaction(s) from {path}")
