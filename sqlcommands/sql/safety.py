from __future__ import annotations

import re
from typing import Iterable, Optional

from ..config import ExecutionPolicy
from ..errors import PermissionDenied

ROW_VERBS = ("SELECT", "WITH", "PRAGMA", "SHOW", "DESCRIBE", "EXPLAIN", "VALUES")
INTROSPECTION_POLICY = ExecutionPolicy(allowed_operations=("SELECT", "PRAGMA"))


def leading_verb(sql: str) -> str:
    """First whitespace-delimited token of the statement, upper-cased."""
    parts = (sql or "").strip().upper().split(None, 1)
    if not parts:
        return ""
    # "SELECT(" / "PRAGMA table_info(" style tokens
    return re.split(r"[(;]", parts[0], maxsplit=1)[0]


def returns_rows(sql: str) -> bool:
    return leading_verb(sql) in ROW_VERBS


def find_banned_keyword(sql: str, banned: Iterable[str]) -> Optional[str]:
    up = (sql or "").upper()
    for kw in banned:
        pattern = r"\b" + r"\s+".join(re.escape(w) for w in kw.split()) + r"\b"
        if re.search(pattern, up):
            return kw
    return None


def validate_operation(sql: str, policy: ExecutionPolicy) -> str:
    """Return the statement verb, or raise PermissionDenied."""
    verb = leading_verb(sql)
    if not verb:
        raise PermissionDenied("Empty SQL statement")
    if not policy.allows(verb):
        raise PermissionDenied(f"Operation '{verb}' is not allowed")
    danger = find_banned_keyword(sql, policy.banned_keywords)
    if danger:
        raise PermissionDenied(f"Dangerous operation '{danger}' is not allowed")
    return verb
