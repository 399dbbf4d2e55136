"""CSV account snapshot writer."""

import csv
import logging
import os
from pathlib import Path
from typing import Iterable, TextIO

from .amount import format_amount
from .errors import LedgerOutputError
from .models.account import AccountSnapshot

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")


def format_row(snapshot: AccountSnapshot) -> list[str]:
    """Render one account as output fields, in OUTPUT_COLUMNS order."""
    return [
        str(snapshot.client),
        format_amount(snapshot.available),
        format_amount(snapshot.held),
        format_amount(snapshot.total),
        "true" if snapshot.locked else "false",
    ]


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> int:
    """Write the header and one row per account to a text stream.

    Returns:
        Number of account rows written
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    count = 0
    for snapshot in snapshots:
        writer.writerow(format_row(snapshot))
        count += 1
    return count


def write_accounts_file(snapshots: Iterable[AccountSnapshot], path: Path) -> int:
    """Write the account snapshot to a file atomically.

    Rows go to a temporary sibling file that replaces ``path`` only once
    everything has been written.

    Raises:
        LedgerOutputError: If the file cannot be written
    """
    temp_file = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_file, "w", encoding="utf-8", newline="") as f:
            count = write_accounts(snapshots, f)
        os.replace(temp_file, path)
    except OSError as e:
        if temp_file.exists():
            temp_file.unlink()
        raise LedgerOutputError(path, e.strerror or str(e)) from e

    logger.info(f"Wrote {count} account(s) to {path}")
    return count
