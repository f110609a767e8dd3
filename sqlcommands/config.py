"""Runtime configuration read from the environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

DB_PATH_ENV = "SQLCOMMANDS_DB_PATH"
ALLOWED_OPERATIONS_ENV = "SQLCOMMANDS_ALLOWED_OPERATIONS"

DEFAULT_ALLOWED_OPERATIONS: Tuple[str, ...] = (
    "SELECT", "INSERT", "UPDATE", "DELETE", "CREATE", "DROP", "ALTER",
)

# Matched on word boundaries against the upper-cased statement text,
# regardless of the leading verb.
DEFAULT_BANNED_KEYWORDS: Tuple[str, ...] = (
    "DROP DATABASE", "DROP SCHEMA", "TRUNCATE", "GRANT", "REVOKE",
    "CREATE USER", "ALTER USER", "DROP USER",
    "DELETE FROM SQLITE_MASTER", "DELETE FROM INFORMATION_SCHEMA",
)


def default_db_path() -> Path:
    # Allow override for Docker/CI
    env = os.getenv(DB_PATH_ENV)
    if env:
        return Path(env).expanduser().resolve()
    # project_root/data/practice.sqlite
    return Path(__file__).resolve().parents[1] / "data" / "practice.sqlite"


def _normalize_verbs(verbs: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for v in verbs:
        token = (v or "").strip().upper()
        if token and token not in seen:
            seen.append(token)
    return tuple(seen)


@dataclass(frozen=True)
class ExecutionPolicy:
    """What a sandbox is allowed to run. Each sandbox owns its own policy."""

    allowed_operations: Tuple[str, ...] = DEFAULT_ALLOWED_OPERATIONS
    banned_keywords: Tuple[str, ...] = DEFAULT_BANNED_KEYWORDS

    def __post_init__(self):
        object.__setattr__(self, "allowed_operations", _normalize_verbs(self.allowed_operations))
        object.__setattr__(self, "banned_keywords", _normalize_verbs(self.banned_keywords))

    def allows(self, verb: str) -> bool:
        return (verb or "").upper() in self.allowed_operations

    def with_operations(self, *verbs: str) -> "ExecutionPolicy":
        """Return a copy that additionally permits ``verbs``."""
        return ExecutionPolicy(
            allowed_operations=self.allowed_operations + tuple(verbs),
            banned_keywords=self.banned_keywords,
        )

    @classmethod
    def from_env(cls, env_value: Optional[str] = None) -> "ExecutionPolicy":
        raw = env_value if env_value is not None else os.getenv(ALLOWED_OPERATIONS_ENV)
        if not raw:
            return cls()
        verbs = _normalize_verbs(raw.split(","))
        if not verbs:
            logger.warning(f"{ALLOWED_OPERATIONS_ENV} is set but lists no verbs; using defaults")
            return cls()
        return cls(allowed_operations=verbs)
