"""Identifier sanitizing and strict validation.

The builder uses the *sanitizer*: it strips every character outside
``[A-Za-z0-9_]`` and quotes what remains. The *validator* is stricter
(leading letter required) and rejects instead of repairing; use it at the
edge where untrusted names first arrive.
"""
from __future__ import annotations

import re
from typing import Any, List, Mapping

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import ArgumentError
from .fragments import Expr

_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9_]")
IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

MAX_VALUE_LENGTH = 65535


def _strip(raw: str) -> str:
    cleaned = _DISALLOWED_RE.sub("", str(raw))
    if not cleaned:
        raise ArgumentError(f"Identifier {raw!r} has no usable characters")
    return cleaned


def sanitize_table(raw: str, *, dialect: Dialect = DEFAULT_DIALECT) -> str:
    q = dialect.quote
    return f"{q}{_strip(raw)}{q}"


def sanitize_column(raw: str, *, dialect: Dialect = DEFAULT_DIALECT) -> str:
    if isinstance(raw, Expr):
        return str(raw)
    if raw == "*":
        return "*"
    if raw.count(".") > 1:
        raise ArgumentError(f"Column {raw!r} has more than one '.'")
    if "." in raw:
        table, _, column = raw.partition(".")
        return f"{sanitize_table(table, dialect=dialect)}.{sanitize_column(column, dialect=dialect)}"
    q = dialect.quote
    return f"{q}{_strip(raw)}{q}"


def is_valid_table_name(name: str) -> bool:
    return isinstance(name, str) and IDENTIFIER_RE.match(name) is not None


def is_valid_column_name(name: str) -> bool:
    if not isinstance(name, str):
        return False
    if name == "*":
        return True
    if "." in name:
        parts = name.split(".")
        return (
            len(parts) == 2
            and is_valid_table_name(parts[0])
            and (parts[1] == "*" or is_valid_table_name(parts[1]))
        )
    return IDENTIFIER_RE.match(name) is not None


def validate_table_name(name: str) -> str:
    if not is_valid_table_name(name):
        raise ArgumentError(f"Invalid table name: {name}")
    return name


def validate_column_name(name: str) -> str:
    if not is_valid_column_name(name):
        raise ArgumentError(f"Invalid column name: {name}")
    return name


def validate_data(data: Mapping[str, Any]) -> List[str]:
    """Problems with an INSERT/UPDATE data mapping (empty list when valid)."""
    errors = []
    if not data:
        errors.append("Data array cannot be empty")
    for column, value in (data or {}).items():
        if not is_valid_column_name(column):
            errors.append(f"Invalid column name: {column}")
        if isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
            errors.append(f"Value too long for column: {column}")
    return errors


def validate_where(conditions: Mapping[str, Any]) -> List[str]:
    """Problems with a WHERE condition mapping (empty list when valid)."""
    errors = []
    for column, value in (conditions or {}).items():
        if not is_valid_column_name(column):
            errors.append(f"Invalid column name in WHERE clause: {column}")
        if isinstance(value, (list, tuple)) and not value:
            errors.append(f"Empty array value for column: {column}")
    return errors
