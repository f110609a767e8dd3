"""WHERE composition and reusable predicates.

Every value supplied here ends up in ``params``; none is ever written into
the SQL text.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import ArgumentError
from .fragments import PredicateFragment, QueryFragment
from .identifiers import sanitize_column

COMPARISON_OPERATORS = ("=", "!=", "<>", "<", "<=", ">", ">=")
# "!" is a plain character in every dialect, unlike a backslash
LIKE_ESCAPE = "!"
MAX_PER_PAGE = 1000


def _placeholders(n: int) -> str:
    return ", ".join("?" * n)


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def build_where(conditions: Mapping[str, Any], *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    """AND together ``col = ?`` / ``col IN (?, ...)`` for each condition.

    The returned fragment's ``sql`` has no ``WHERE`` keyword so it can be
    appended to any statement.
    """
    parts: List[str] = []
    params: List[Any] = []
    for column, value in conditions.items():
        col = sanitize_column(column, dialect=dialect)
        if _is_list(value):
            if not value:
                raise ArgumentError(f"Empty array value for column: {column}")
            parts.append(f"{col} IN ({_placeholders(len(value))})")
            params.extend(value)
        else:
            parts.append(f"{col} = ?")
            params.append(value)
    return QueryFragment(" AND ".join(parts), params)


def escape_like(pattern: str) -> str:
    return (
        str(pattern)
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _pattern(column: str, op: str, value: Any, dialect: Dialect, escaped: bool = False) -> PredicateFragment:
    expr = f"{sanitize_column(column, dialect=dialect)} {op} ?"
    if escaped:
        expr += f" ESCAPE '{LIKE_ESCAPE}'"
    return PredicateFragment(expr, [value])


def like(column: str, pattern: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "LIKE", pattern, dialect)


def not_like(column: str, pattern: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "NOT LIKE", pattern, dialect)


def glob(column: str, pattern: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "GLOB", pattern, dialect)


def regexp(column: str, pattern: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "REGEXP", pattern, dialect)


def starts_with(column: str, prefix: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "LIKE", f"{escape_like(prefix)}%", dialect, escaped=True)


def ends_with(column: str, suffix: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "LIKE", f"%{escape_like(suffix)}", dialect, escaped=True)


def contains(column: str, needle: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return _pattern(column, "LIKE", f"%{escape_like(needle)}%", dialect, escaped=True)


def between(column: str, start: Any, end: Any, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    expr = f"{sanitize_column(column, dialect=dialect)} BETWEEN ? AND ?"
    return PredicateFragment(expr, [start, end])


def not_between(column: str, start: Any, end: Any, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    expr = f"{sanitize_column(column, dialect=dialect)} NOT BETWEEN ? AND ?"
    return PredicateFragment(expr, [start, end])


def compare(column: str, op: str, value: Any, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    if op not in COMPARISON_OPERATORS:
        raise ArgumentError(f"Unsupported comparison operator: {op!r}")
    return _pattern(column, op, value, dialect)


def is_null(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return PredicateFragment(f"{sanitize_column(column, dialect=dialect)} IS NULL")


def is_not_null(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    return PredicateFragment(f"{sanitize_column(column, dialect=dialect)} IS NOT NULL")


def in_list(column: str, values: Sequence[Any], *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    if not values:
        return PredicateFragment("1=0")  # always false
    col = sanitize_column(column, dialect=dialect)
    return PredicateFragment(f"{col} IN ({_placeholders(len(values))})", list(values))


def not_in_list(column: str, values: Sequence[Any], *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    if not values:
        return PredicateFragment("1=1")
    col = sanitize_column(column, dialect=dialect)
    return PredicateFragment(f"{col} NOT IN ({_placeholders(len(values))})", list(values))


def _combine(joiner: str, predicates: Sequence[PredicateFragment]) -> PredicateFragment:
    if not predicates:
        raise ArgumentError("At least one predicate is required")
    if len(predicates) == 1:
        return predicates[0]
    params: List[Any] = []
    for p in predicates:
        params.extend(p.params)
    body = f" {joiner} ".join(p.expression for p in predicates)
    return PredicateFragment(f"({body})", params)


def and_(predicates: Sequence[PredicateFragment]) -> PredicateFragment:
    return _combine("AND", predicates)


def or_(predicates: Sequence[PredicateFragment]) -> PredicateFragment:
    return _combine("OR", predicates)


def search(columns: Sequence[str], term: str, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    """Case-insensitive-ish substring search across several columns."""
    if not columns:
        raise ArgumentError("Search requires at least one column")
    preds = [contains(c, term, dialect=dialect) for c in columns]
    params = [p.params[0] for p in preds]
    return PredicateFragment("(" + " OR ".join(p.expression for p in preds) + ")", params)


def date_range(
    column: str,
    start: Optional[Any],
    end: Optional[Any],
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> PredicateFragment:
    col = sanitize_column(column, dialect=dialect)
    parts, params = [], []
    if start:
        parts.append(f"{col} >= ?")
        params.append(start)
    if end:
        parts.append(f"{col} <= ?")
        params.append(end)
    if not parts:
        return PredicateFragment("1=1")
    return PredicateFragment(" AND ".join(parts), params)


def pagination(page: int, per_page: int) -> Dict[str, int]:
    page = max(1, int(page))
    per_page = max(1, min(int(per_page), MAX_PER_PAGE))
    return {"limit": per_page, "offset": (page - 1) * per_page}
