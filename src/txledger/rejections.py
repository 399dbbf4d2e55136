"""JSONL log of rejected transactions.

Each rejection becomes one ``RejectionEvent`` line tagged with the run that
produced it, so several runs can share a log file.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console

from .errors import LedgerOutputError, TransactionError
from .models.rejection import RejectionEvent

console = Console(stderr=True)


class RejectionLogWriter:
    """Records rejected transactions for one ledger run.

    Existing lines are left alone; events are only ever added at the end.
    """

    def __init__(self, log_path: Path, run_id: str | None = None):
        """
        Args:
            log_path: Rejection log (.jsonl), created on first rejection
            run_id: Tag shared by every event of this run (default: fresh uuid4)
        """
        self.log_path = log_path
        self.run_id = run_id or str(uuid.uuid4())

    def append(self, error: TransactionError) -> RejectionEvent:
        """Record one rejected transaction.

        Returns:
            The event that was written

        Raises:
            LedgerOutputError: If the log cannot be created or written
        """
        event = RejectionEvent(
            event_id=str(uuid.uuid4()),
            run_id=self.run_id,
            ts=datetime.now(timezone.utc),
            kind=error.kind.value,
            client_id=error.client_id,
            message=error.message,
            transaction=error.transaction,
            account=error.account,
        )
        # Decimals and the timestamp serialize as strings
        line = json.dumps(event.model_dump(mode="json")) + "\n"

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            raise LedgerOutputError(self.log_path, e.strerror or str(e)) from e

        return event


def read_rejections_tail(log_path: Path, n: int = 20) -> list[RejectionEvent]:
    """Most recent rejections in a log, oldest first.

    Lines that do not parse as a ``RejectionEvent`` are reported on stderr
    and left out.

    Args:
        log_path: Rejection log (.jsonl); a missing file has no rejections
        n: How many trailing lines to consider

    Raises:
        ValueError: If n is not positive
    """
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")
    if not log_path.exists():
        return []

    with open(log_path, "r", encoding="utf-8") as f:
        recent = f.readlines()[-n:]

    events: list[RejectionEvent] = []
    skipped = 0
    for line in recent:
        line = line.strip()
        if not line:
            continue
        try:
            events.append(RejectionEvent(**json.loads(line)))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            skipped += 1
            console.print(f"[yellow]Warning: unreadable rejection entry: {e}[/yellow]")

    if skipped:
        console.print(f"[yellow]Left out {skipped} unreadable line(s)[/yellow]")

    return events
