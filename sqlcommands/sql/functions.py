"""SQL function and expression helpers.

Every helper returns an ``Expr``: plain SQL text, ready to drop into a
SELECT list, ORDER BY, GROUP BY or another helper.

Safety contract: identifier-position arguments (column names) go through
the sanitizer. Literal-position arguments (replacement text, defaults,
JSON paths, CASE results, pivot labels, date modifiers) are rendered with
``literal()``, i.e. single-quote escaping, NOT parameter binding. Do not
pass untrusted values in literal positions; use the predicates in
``clauses`` for anything user supplied.
"""
from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import ArgumentError
from .fragments import Expr, literal
from .identifiers import sanitize_column

_TYPE_RE = re.compile(r"^[A-Za-z][A-Za-z ]*(\(\s*\d+\s*(,\s*\d+\s*)?\))?$")
_DIRECTIONS = ("ASC", "DESC")
Columns = Union[str, Sequence[str]]


def _col(column: str, dialect: Dialect) -> str:
    return sanitize_column(column, dialect=dialect)


def _call(name: str, *args: str) -> Expr:
    return Expr(f"{name}({', '.join(args)})")


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArgumentError(f"{what} must be an integer, got {value!r}")
    return value


# --- aggregates ---

def count(column: str = "*", *, distinct: bool = False, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    if column == "*":
        return Expr("COUNT(*)")
    prefix = "DISTINCT " if distinct else ""
    return Expr(f"COUNT({prefix}{_col(column, dialect)})")


def sum(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("SUM", _col(column, dialect))


def avg(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("AVG", _col(column, dialect))


def min(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("MIN", _col(column, dialect))


def max(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("MAX", _col(column, dialect))


def group_concat(column: str, separator: str = ",", *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    col = _col(column, dialect)
    if dialect is Dialect.SQLITE:
        return _call("GROUP_CONCAT", col, literal(separator))
    return Expr(f"GROUP_CONCAT({col} SEPARATOR {literal(separator)})")


# --- strings ---

def length(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("LENGTH", _col(column, dialect))


def upper(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("UPPER", _col(column, dialect))


def lower(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("LOWER", _col(column, dialect))


def trim(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("TRIM", _col(column, dialect))


def ltrim(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("LTRIM", _col(column, dialect))


def rtrim(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("RTRIM", _col(column, dialect))


def substring(column: str, start: int, length: Optional[int] = None, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    col = _col(column, dialect)
    start = _int(start, "start")
    if length is not None:
        return Expr(f"SUBSTR({col}, {start}, {_int(length, 'length')})")
    return Expr(f"SUBSTR({col}, {start})")


def replace(column: str, search: str, replacement: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("REPLACE", _col(column, dialect), literal(search), literal(replacement))


def instr(column: str, needle: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("INSTR", _col(column, dialect), literal(needle))


def concat(parts: Columns, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    """Concatenate columns (plain strings) and expressions (``Expr``).

    Wrap constant text with ``literal()``.
    """
    parts = _as_list(parts)
    if not parts:
        raise ArgumentError("concat requires at least one part")
    rendered = [_col(p, dialect) for p in parts]
    if dialect.concat_operator:
        return Expr(dialect.concat_operator.join(rendered))
    return _call("CONCAT", *rendered)


# --- math ---

def abs_(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("ABS", _col(column, dialect))


def round_(column: str, digits: int = 0, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("ROUND", _col(column, dialect), str(_int(digits, "digits")))


def ceil(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("CEIL", _col(column, dialect))


def floor(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("FLOOR", _col(column, dialect))


def power(column: str, exponent: float, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("POWER", _col(column, dialect), literal(float(exponent)))


def sqrt(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("SQRT", _col(column, dialect))


def mod(column: str, divisor: int, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("MOD", _col(column, dialect), str(_int(divisor, "divisor")))


def random(*, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return Expr("RANDOM()" if dialect is Dialect.SQLITE else "RAND()")


# --- trigonometry ---

def sin(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("SIN", _col(column, dialect))


def cos(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("COS", _col(column, dialect))


def tan(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("TAN", _col(column, dialect))


def pi() -> Expr:
    return Expr("PI()")


# --- date / time ---

def now(*, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return Expr("CURRENT_TIMESTAMP")


def date(column: str, modifiers: Columns = (), *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    col = _col(column, dialect)
    modifiers = _as_list(modifiers)
    if dialect is Dialect.SQLITE:
        return _call("DATE", col, *[literal(m) for m in modifiers])
    if modifiers:
        raise ArgumentError("date modifiers are only supported by the sqlite dialect")
    return _call("DATE", col)


def datetime(column: str, modifiers: Columns = (), *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    col = _col(column, dialect)
    modifiers = _as_list(modifiers)
    if dialect is Dialect.SQLITE:
        return _call("DATETIME", col, *[literal(m) for m in modifiers])
    if modifiers:
        raise ArgumentError("datetime modifiers are only supported by the sqlite dialect")
    return _call("TIMESTAMP", col)


def strftime(fmt: str, column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    col = _col(column, dialect)
    if dialect is Dialect.SQLITE:
        return _call("STRFTIME", literal(fmt), col)
    return _call("DATE_FORMAT", col, literal(fmt))


def julianday(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("JULIANDAY", _col(column, dialect))


def date_diff_days(end: str, start: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    if dialect is Dialect.SQLITE:
        return Expr(f"JULIANDAY({_col(end, dialect)}) - JULIANDAY({_col(start, dialect)})")
    return _call("DATEDIFF", _col(end, dialect), _col(start, dialect))


# --- window functions ---

def over(
    function: str,
    partition_by: Columns = (),
    order_by: Columns = (),
    direction: str = "ASC",
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> Expr:
    """Attach an ``OVER (...)`` window to an aggregate/window call."""
    partition_by = _as_list(partition_by)
    order_by = _as_list(order_by)
    clauses = []
    if partition_by:
        clauses.append("PARTITION BY " + ", ".join(_col(c, dialect) for c in partition_by))
    if order_by:
        d = direction.upper() if direction and direction.upper() in _DIRECTIONS else "ASC"
        clauses.append("ORDER BY " + ", ".join(f"{_col(c, dialect)} {d}" for c in order_by))
    return Expr(f"{function} OVER ({' '.join(clauses)})")


def row_number(partition_by: Columns = (), order_by: Columns = (), direction: str = "ASC",
               *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return over("ROW_NUMBER()", partition_by, order_by, direction, dialect=dialect)


def rank(partition_by: Columns = (), order_by: Columns = (), direction: str = "ASC",
         *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return over("RANK()", partition_by, order_by, direction, dialect=dialect)


def dense_rank(partition_by: Columns = (), order_by: Columns = (), direction: str = "ASC",
               *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return over("DENSE_RANK()", partition_by, order_by, direction, dialect=dialect)


def ntile(buckets: int, order_by: Columns, direction: str = "ASC",
          *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return over(f"NTILE({_int(buckets, 'buckets')})", (), order_by, direction, dialect=dialect)


def lag(column: str, offset: int = 1, default: Any = None, order_by: Columns = (),
        partition_by: Columns = (), *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    fn = _call("LAG", _col(column, dialect), str(_int(offset, "offset")), literal(default))
    return over(fn, partition_by, order_by, dialect=dialect)


def lead(column: str, offset: int = 1, default: Any = None, order_by: Columns = (),
         partition_by: Columns = (), *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    fn = _call("LEAD", _col(column, dialect), str(_int(offset, "offset")), literal(default))
    return over(fn, partition_by, order_by, dialect=dialect)


# --- JSON ---

def json_extract(column: str, path: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("JSON_EXTRACT", _col(column, dialect), literal(path))


def json_object(pairs: Mapping[str, str], *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    """``{json_key: column}`` -> ``JSON_OBJECT('key', col, ...)``."""
    args = []
    for key, column in pairs.items():
        args.extend([literal(key), _col(column, dialect)])
    return _call("JSON_OBJECT", *args)


def json_array(columns: Columns, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("JSON_ARRAY", *[_col(c, dialect) for c in _as_list(columns)])


def json_array_length(column: str, path: Optional[str] = None, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    col = _col(column, dialect)
    if dialect is Dialect.SQLITE:
        fn = "JSON_ARRAY_LENGTH"
    else:
        fn = "JSON_LENGTH"
    if path is not None:
        return _call(fn, col, literal(path))
    return _call(fn, col)


# --- conditional ---

def coalesce(columns: Columns, default: Any = None, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    columns = _as_list(columns)
    if not columns:
        raise ArgumentError("coalesce requires at least one column")
    args = [_col(c, dialect) for c in columns]
    if default is not None:
        args.append(literal(default))
    return _call("COALESCE", *args)


def ifnull(column: str, default: Any, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("IFNULL", _col(column, dialect), literal(default))


def nullif(column: str, value: Any, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return _call("NULLIF", _col(column, dialect), literal(value))


def case_when(branches: Sequence[Tuple[str, Any]], default: Any = None) -> Expr:
    """``[(condition_sql, result), ...]`` -> ``CASE WHEN ... END``.

    Conditions are trusted SQL text (e.g. built with ``Expr``); results are
    literals.
    """
    if not branches:
        raise ArgumentError("case_when requires at least one branch")
    body = " ".join(f"WHEN {cond} THEN {literal(result)}" for cond, result in branches)
    if default is not None:
        body += f" ELSE {literal(default)}"
    return Expr(f"CASE {body} END")


def cast(column: str, type_name: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    if not _TYPE_RE.match(type_name or ""):
        raise ArgumentError(f"Invalid type for CAST: {type_name!r}")
    return Expr(f"CAST({_col(column, dialect)} AS {type_name.upper()})")


def pivot(column: str, value_column: str, buckets: Sequence[Any], aggregate: str = "SUM",
          *, dialect: Dialect = DEFAULT_DIALECT) -> Tuple[Expr, ...]:
    """One conditional aggregate per bucket label, aliased to the label."""
    agg = aggregate.upper()
    if agg not in ("SUM", "COUNT", "AVG", "MIN", "MAX"):
        raise ArgumentError(f"Unsupported pivot aggregate: {aggregate!r}")
    col = _col(column, dialect)
    val = _col(value_column, dialect)
    fallback = " ELSE 0" if agg in ("SUM", "COUNT") else ""
    out = []
    for label in buckets:
        expr = f"{agg}(CASE WHEN {col} = {literal(label)} THEN {val}{fallback} END)"
        out.append(alias(Expr(expr), str(label), dialect=dialect))
    return tuple(out)


# --- misc ---

def alias(expression: str, name: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    rendered = expression if isinstance(expression, Expr) else _col(expression, dialect)
    q = dialect.quote
    return Expr(f"{rendered} AS {q}{_alias_name(name)}{q}")


def _alias_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", str(name)).strip("_")
    if not cleaned:
        raise ArgumentError(f"Alias {name!r} has no usable characters")
    return cleaned


def distinct(column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    return Expr(f"DISTINCT {_col(column, dialect)}")
