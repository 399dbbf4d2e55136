"""Configuration management for txledger."""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

logger = logging.getLogger(__name__)

CONFIG_DIR = ".txledger"
CONFIG_FILE = "config.toml"


class FirstTransactionPolicy(str, Enum):
    """What to do when a client's first transaction is not a deposit."""

    STRICT = "strict"
    LENIENT = "lenient"


class UnknownReferencePolicy(str, Enum):
    """What to do when a dispute, resolve or chargeback references an unknown id."""

    REJECT = "reject"
    IGNORE = "ignore"


class ErrorPolicy(str, Enum):
    """Whether a rejected transaction stops the run."""

    CONTINUE = "continue"
    ABORT = "abort"


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .txledger/config.toml if it exists."""
    config_file = repo_root / CONFIG_DIR / CONFIG_FILE

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        # If config file is malformed, ignore it
        logger.warning(f"Ignoring unreadable config file {config_file}: {e}")
        return None


def _ledger_section(data: Optional[dict]) -> dict:
    if not data:
        return {}
    section = data.get("ledger")
    if not isinstance(section, dict):
        return {}
    return section


def _as_bool(value: Any, *, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "y", "on"}:
            return True
        if lowered in {"0", "false", "no", "n", "off"}:
            return False
    raise ValueError(f"Invalid config: {name} must be a boolean")


def _as_policy(enum_cls: type[Enum], value: Any, *, name: str) -> Enum:
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid config: {name} must be one of {choices}") from None


def _pick(env_name: str, section: dict, key: str) -> Any:
    """Environment variable first, then repo config, else None."""
    env_value = os.environ.get(env_name)
    if env_value is not None and env_value.strip():
        return env_value
    return section.get(key)


class LedgerConfig(BaseModel):
    """Policies and output settings for a ledger run."""

    first_transaction: FirstTransactionPolicy = Field(default=FirstTransactionPolicy.STRICT)
    unknown_reference: UnknownReferencePolicy = Field(default=UnknownReferencePolicy.REJECT)
    on_error: ErrorPolicy = Field(default=ErrorPolicy.CONTINUE)
    sort_output: bool = Field(default=True)
    rejections_log: Optional[Path] = Field(default=None)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, start_dir: Optional[Path] = None, **overrides: Any) -> "LedgerConfig":
        """Load configuration with the following precedence:

        1. Keyword overrides (CLI options); None values are skipped
        2. TXLEDGER_* environment variables
        3. repo-local .txledger/config.toml ([ledger] table)
        4. Defaults

        Args:
            start_dir: Directory to start the repo root search from (default: CWD)
            **overrides: Field values that take precedence over everything else

        Raises:
            ValueError: If a setting has an invalid value
        """
        repo_root = _find_repo_root(start_dir or Path.cwd())
        section = _ledger_section(_load_repo_config_data(repo_root))

        values: dict[str, Any] = {}

        first_transaction = _pick("TXLEDGER_FIRST_TRANSACTION", section, "first_transaction")
        if first_transaction is not None:
            values["first_transaction"] = _as_policy(
                FirstTransactionPolicy, first_transaction, name="first_transaction"
            )

        unknown_reference = _pick("TXLEDGER_UNKNOWN_REFERENCE", section, "unknown_reference")
        if unknown_reference is not None:
            values["unknown_reference"] = _as_policy(
                UnknownReferencePolicy, unknown_reference, name="unknown_reference"
            )

        on_error = _pick("TXLEDGER_ON_ERROR", section, "on_error")
        if on_error is not None:
            values["on_error"] = _as_policy(ErrorPolicy, on_error, name="on_error")

        sort_output = _pick("TXLEDGER_SORT_OUTPUT", section, "sort_output")
        if sort_output is not None:
            values["sort_output"] = _as_bool(sort_output, name="sort_output")

        env_rejections_log = os.environ.get("TXLEDGER_REJECTIONS_LOG", "").strip()
        if env_rejections_log:
            values["rejections_log"] = Path(env_rejections_log).expanduser()
        elif section.get("rejections_log"):
            path = Path(str(section["rejections_log"])).expanduser()
            # Relative paths in the repo config are relative to the repo root
            values["rejections_log"] = path if path.is_absolute() else repo_root / path

        for key, value in overrides.items():
            if value is not None:
                values[key] = value

        return cls(**values)
