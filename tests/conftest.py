"""Pytest fixtures for txledger tests."""

import pytest

from txledger.config import (
    ErrorPolicy,
    FirstTransactionPolicy,
    LedgerConfig,
    UnknownReferencePolicy,
)

ENV_VARS = (
    "TXLEDGER_FIRST_TRANSACTION",
    "TXLEDGER_UNKNOWN_REFERENCE",
    "TXLEDGER_ON_ERROR",
    "TXLEDGER_SORT_OUTPUT",
    "TXLEDGER_REJECTIONS_LOG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep TXLEDGER_* settings from the outer environment out of tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def strict_config():
    """Default policies: strict first transaction, reject unknown ids, continue on error."""
    return LedgerConfig()


@pytest.fixture
def lenient_config():
    """Lenient first transaction and ignored unknown references."""
    return LedgerConfig(
        first_transaction=FirstTransactionPolicy.LENIENT,
        unknown_reference=UnknownReferencePolicy.IGNORE,
    )


@pytest.fixture
def abort_config():
    return LedgerConfig(on_error=ErrorPolicy.ABORT)


@pytest.fixture
def repo_dir(tmp_path, monkeypatch):
    """Temporary repo root (has .git) used as the working directory.

    Returns:
        Path to the repo root
    """
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    monkeypatch.chdir(repo)
    return repo


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""

    def _write(text: str, name: str = "transactions.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
