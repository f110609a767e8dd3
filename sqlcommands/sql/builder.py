"""Statement builder.

Each public function returns a ``QueryFragment`` whose ``sql`` holds one
``?`` per entry in ``params``, in order. Table and column names go through
the sanitizer; values only ever travel in ``params``.

Two inputs are trusted text and are inserted verbatim: column
*definitions* for DDL (``"INTEGER PRIMARY KEY AUTOINCREMENT"``) and JOIN
``ON`` predicates. Never forward user input into either.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import ArgumentError, UnsupportedOperation
from .clauses import build_where
from .fragments import Expr, PredicateFragment, QueryFragment
from .identifiers import sanitize_column, sanitize_table, validate_table_name

Column = Union[str, PredicateFragment]
QueryLike = Union[QueryFragment, str]

ORDER_DIRECTIONS = ("ASC", "DESC")
SQLITE_CATALOG = "sqlite_master"

_TABLE_CONSTRAINT_RE = re.compile(
    r"^\s*(FOREIGN KEY|PRIMARY KEY|UNIQUE)\s*\(([^)]*)\)\s*$", re.IGNORECASE
)
_PRAGMA_VALUE_RE = re.compile(r"^[A-Za-z0-9_]+$")

_OPTION_KEYS = {
    "where": "where",
    "predicates": "predicates",
    "group_by": "group_by",
    "groupBy": "group_by",
    "having": "having",
    "order_by": "order_by",
    "orderBy": "order_by",
    "order_direction": "order_direction",
    "orderDirection": "order_direction",
    "limit": "limit",
    "offset": "offset",
    "distinct": "distinct",
}


def _non_negative_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdecimal():
            return int(text)
    return None


def _as_tuple(value: Any) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, PredicateFragment)):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class SelectOptions:
    """Optional parts of a SELECT.

    Invalid ``order_direction``, ``limit`` and ``offset`` values are dropped
    here rather than rejected, so a bad page size never turns into an error.
    """

    where: Mapping[str, Any] = field(default_factory=dict)
    predicates: Tuple[PredicateFragment, ...] = ()
    group_by: Tuple[str, ...] = ()
    having: Optional[Union[PredicateFragment, str]] = None
    order_by: Tuple[str, ...] = ()
    order_direction: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    distinct: bool = False

    def __post_init__(self):
        object.__setattr__(self, "where", dict(self.where or {}))
        object.__setattr__(self, "predicates", _as_tuple(self.predicates))
        object.__setattr__(self, "group_by", _as_tuple(self.group_by))
        object.__setattr__(self, "order_by", _as_tuple(self.order_by))
        direction = self.order_direction.upper() if isinstance(self.order_direction, str) else None
        object.__setattr__(self, "order_direction", direction if direction in ORDER_DIRECTIONS else None)
        object.__setattr__(self, "limit", _non_negative_int(self.limit))
        object.__setattr__(self, "offset", _non_negative_int(self.offset))
        predicates = []
        for p in self.predicates:
            if isinstance(p, Expr):
                # text-only conditions such as exists(); they carry no params
                p = PredicateFragment(str(p))
            if not isinstance(p, PredicateFragment):
                raise ArgumentError(f"predicates must be PredicateFragment or Expr values, got {type(p).__name__}")
            predicates.append(p)
        object.__setattr__(self, "predicates", tuple(predicates))

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "SelectOptions":
        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            if key not in _OPTION_KEYS:
                raise ArgumentError(f"Unknown select option: {key!r}")
            kwargs[_OPTION_KEYS[key]] = value
        return cls(**kwargs)


def _options(options: Union[SelectOptions, Mapping[str, Any], None]) -> SelectOptions:
    if options is None:
        return SelectOptions()
    if isinstance(options, SelectOptions):
        return options
    if isinstance(options, Mapping):
        return SelectOptions.from_dict(options)
    raise ArgumentError(f"options must be SelectOptions or a mapping, got {type(options).__name__}")


def _columns(columns: Optional[Sequence[Column]], dialect: Dialect) -> Tuple[str, List[Any]]:
    if isinstance(columns, (str, PredicateFragment)):
        columns = [columns]
    if not columns:
        columns = ["*"]
    rendered, params = [], []
    for c in columns:
        if isinstance(c, PredicateFragment):
            rendered.append(c.expression)
            params.extend(c.params)
        else:
            rendered.append(sanitize_column(c, dialect=dialect))
    return ", ".join(rendered), params


def _select_from(
    source: str,
    columns: Optional[Sequence[Column]],
    options: Union[SelectOptions, Mapping[str, Any], None],
    dialect: Dialect,
) -> QueryFragment:
    opts = _options(options)
    cols, params = _columns(columns, dialect)
    keyword = "SELECT DISTINCT" if opts.distinct else "SELECT"
    sql = f"{keyword} {cols} FROM {source}"

    conditions = []
    if opts.where:
        where = build_where(opts.where, dialect=dialect)
        conditions.append(where.sql)
        params.extend(where.params)
    for p in opts.predicates:
        conditions.append(p.expression)
        params.extend(p.params)
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)

    if opts.group_by:
        sql += " " + group_by(opts.group_by, dialect=dialect)
    if opts.having is not None:
        if isinstance(opts.having, PredicateFragment):
            sql += f" HAVING {opts.having.expression}"
            params.extend(opts.having.params)
        else:
            sql += " " + having(opts.having)

    if opts.order_by:
        sql += " ORDER BY " + ", ".join(sanitize_column(c, dialect=dialect) for c in opts.order_by)
        if opts.order_direction:
            sql += f" {opts.order_direction}"

    if opts.limit is not None:
        sql += f" LIMIT {opts.limit}"
        if opts.offset is not None:
            sql += f" OFFSET {opts.offset}"

    return QueryFragment(sql, params)


# --- DML ---

def select(
    table: str,
    columns: Optional[Sequence[Column]] = None,
    options: Union[SelectOptions, Mapping[str, Any], None] = None,
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> QueryFragment:
    return _select_from(sanitize_table(table, dialect=dialect), columns, options, dialect)


def insert(table: str, data: Mapping[str, Any], *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if not data:
        raise ArgumentError("Data array cannot be empty")
    cols = ", ".join(sanitize_column(c, dialect=dialect) for c in data)
    placeholders = ", ".join("?" * len(data))
    sql = f"INSERT INTO {sanitize_table(table, dialect=dialect)} ({cols}) VALUES ({placeholders})"
    return QueryFragment(sql, list(data.values()))


def update(
    table: str,
    data: Mapping[str, Any],
    where: Mapping[str, Any],
    *,
    dialect: Dialect = DEFAULT_DIALECT,
) -> QueryFragment:
    if not data:
        raise ArgumentError("Data array cannot be empty")
    if not where:
        raise ArgumentError("WHERE conditions cannot be empty for UPDATE")
    set_parts = [f"{sanitize_column(c, dialect=dialect)} = ?" for c in data]
    clause = build_where(where, dialect=dialect)
    sql = (
        f"UPDATE {sanitize_table(table, dialect=dialect)} "
        f"SET {', '.join(set_parts)} WHERE {clause.sql}"
    )
    return QueryFragment(sql, list(data.values()) + list(clause.params))


def delete(table: str, where: Mapping[str, Any], *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if not where:
        raise ArgumentError("WHERE conditions cannot be empty for DELETE")
    clause = build_where(where, dialect=dialect)
    sql = f"DELETE FROM {sanitize_table(table, dialect=dialect)} WHERE {clause.sql}"
    return QueryFragment(sql, clause.params)


# --- DDL ---

def _column_definition(name: str, definition: str, dialect: Dialect) -> str:
    # Table-level constraints are keyed like "FOREIGN KEY (user_id)"
    m = _TABLE_CONSTRAINT_RE.match(name)
    if m:
        keyword = m.group(1).upper()
        cols = ", ".join(sanitize_column(c.strip(), dialect=dialect) for c in m.group(2).split(","))
        return f"{keyword} ({cols}) {definition}".rstrip()
    return f"{sanitize_column(name, dialect=dialect)} {definition}".rstrip()


def create_table(
    table: str,
    columns: Mapping[str, str],
    *,
    if_not_exists: bool = False,
    dialect: Dialect = DEFAULT_DIALECT,
) -> QueryFragment:
    if not columns:
        raise ArgumentError("Columns array cannot be empty")
    defs = ", ".join(_column_definition(n, d, dialect) for n, d in columns.items())
    guard = "IF NOT EXISTS " if if_not_exists else ""
    return QueryFragment(f"CREATE TABLE {guard}{sanitize_table(table, dialect=dialect)} ({defs})")


def alter_table(table: str, alterations: Sequence[str], *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if not alterations:
        raise ArgumentError("Alterations array cannot be empty")
    if isinstance(alterations, str):
        alterations = [alterations]
    return QueryFragment(f"ALTER TABLE {sanitize_table(table, dialect=dialect)} {', '.join(alterations)}")


def add_column(table: str, column: str, definition: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return alter_table(table, [f"ADD COLUMN {_column_definition(column, definition, dialect)}"], dialect=dialect)


def drop_column(table: str, column: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return alter_table(table, [f"DROP COLUMN {sanitize_column(column, dialect=dialect)}"], dialect=dialect)


def rename_table(table: str, new_name: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return alter_table(table, [f"RENAME TO {sanitize_table(new_name, dialect=dialect)}"], dialect=dialect)


def rename_column(table: str, old: str, new: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    change = f"RENAME COLUMN {sanitize_column(old, dialect=dialect)} TO {sanitize_column(new, dialect=dialect)}"
    return alter_table(table, [change], dialect=dialect)


def drop_table(table: str, if_exists: bool = True, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    guard = "IF EXISTS " if if_exists else ""
    return QueryFragment(f"DROP TABLE {guard}{sanitize_table(table, dialect=dialect)}")


def truncate_table(table: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    name = sanitize_table(table, dialect=dialect)
    if not dialect.supports_truncate:
        # no native TRUNCATE
        return QueryFragment(f"DELETE FROM {name}")
    return QueryFragment(f"TRUNCATE TABLE {name}")


def create_index(
    name: str,
    table: str,
    columns: Sequence[str],
    *,
    unique: bool = False,
    if_not_exists: bool = False,
    dialect: Dialect = DEFAULT_DIALECT,
) -> QueryFragment:
    if isinstance(columns, str):
        columns = [columns]
    if not columns:
        raise ArgumentError("Index columns cannot be empty")
    cols = ", ".join(sanitize_column(c, dialect=dialect) for c in columns)
    kind = "UNIQUE INDEX" if unique else "INDEX"
    guard = "IF NOT EXISTS " if if_not_exists else ""
    sql = (
        f"CREATE {kind} {guard}{sanitize_table(name, dialect=dialect)} "
        f"ON {sanitize_table(table, dialect=dialect)} ({cols})"
    )
    return QueryFragment(sql)


def drop_index(
    name: str,
    if_exists: bool = True,
    *,
    table: Optional[str] = None,
    dialect: Dialect = DEFAULT_DIALECT,
) -> QueryFragment:
    idx = sanitize_table(name, dialect=dialect)
    if dialect is Dialect.SQLITE:
        guard = "IF EXISTS " if if_exists else ""
        return QueryFragment(f"DROP INDEX {guard}{idx}")
    if not table:
        raise ArgumentError("DROP INDEX needs the owning table for the generic dialect")
    return QueryFragment(f"DROP INDEX {idx} ON {sanitize_table(table, dialect=dialect)}")


# --- introspection ---

def show_tables(*, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if dialect is Dialect.SQLITE:
        return QueryFragment(
            f"SELECT name FROM {SQLITE_CATALOG} WHERE type='table' AND name NOT LIKE 'sqlite_%'"
        )
    return QueryFragment("SHOW TABLES")


def describe_table(table: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    name = sanitize_table(table, dialect=dialect)
    if dialect is Dialect.SQLITE:
        return QueryFragment(f"PRAGMA table_info({name})")
    return QueryFragment(f"DESCRIBE {name}")


def use_database(database: str, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if dialect is Dialect.SQLITE:
        raise UnsupportedOperation("USE is not supported in SQLite; open a different database file instead")
    return QueryFragment(f"USE {sanitize_table(database, dialect=dialect)}")


def pragma(name: str, value: Any = None, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if not dialect.supports_pragma:
        raise UnsupportedOperation("PRAGMA statements are only available for SQLite")
    validate_table_name(name)
    if value is None:
        return QueryFragment(f"PRAGMA {name}")
    if isinstance(value, bool):
        value = "ON" if value else "OFF"
    if isinstance(value, int):
        return QueryFragment(f"PRAGMA {name} = {value}")
    if isinstance(value, str) and _PRAGMA_VALUE_RE.match(value):
        return QueryFragment(f"PRAGMA {name} = {value}")
    raise ArgumentError(f"Invalid PRAGMA value: {value!r}")


# --- joins ---

def _join(
    kind: str,
    left: str,
    right: str,
    on: Optional[str],
    columns: Optional[Sequence[Column]],
    options: Union[SelectOptions, Mapping[str, Any], None],
    dialect: Dialect,
) -> QueryFragment:
    source = f"{sanitize_table(left, dialect=dialect)} {kind} {sanitize_table(right, dialect=dialect)}"
    if on is not None:
        if "?" in on:
            raise ArgumentError("JOIN conditions cannot contain placeholders; filter with options.where")
        source += f" ON {on}"
    return _select_from(source, columns, options, dialect)


def inner_join(left: str, right: str, on: str, columns: Optional[Sequence[Column]] = None,
               options: Union[SelectOptions, Mapping[str, Any], None] = None,
               *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _join("INNER JOIN", left, right, on, columns, options, dialect)


def left_join(left: str, right: str, on: str, columns: Optional[Sequence[Column]] = None,
              options: Union[SelectOptions, Mapping[str, Any], None] = None,
              *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _join("LEFT JOIN", left, right, on, columns, options, dialect)


def right_join(left: str, right: str, on: str, columns: Optional[Sequence[Column]] = None,
               options: Union[SelectOptions, Mapping[str, Any], None] = None,
               *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if not dialect.supports_right_join:
        raise UnsupportedOperation("RIGHT JOIN is not supported in SQLite")
    return _join("RIGHT JOIN", left, right, on, columns, options, dialect)


def full_outer_join(left: str, right: str, on: str, columns: Optional[Sequence[Column]] = None,
                    options: Union[SelectOptions, Mapping[str, Any], None] = None,
                    *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    if not dialect.supports_full_outer_join:
        raise UnsupportedOperation("FULL OUTER JOIN is not supported in SQLite")
    return _join("FULL OUTER JOIN", left, right, on, columns, options, dialect)


def cross_join(left: str, right: str, columns: Optional[Sequence[Column]] = None,
               options: Union[SelectOptions, Mapping[str, Any], None] = None,
               *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _join("CROSS JOIN", left, right, None, columns, options, dialect)


# --- set operations ---

def as_fragment(query: QueryLike) -> QueryFragment:
    if isinstance(query, QueryFragment):
        return query
    if isinstance(query, str):
        return QueryFragment(query)
    raise ArgumentError(f"Expected a QueryFragment or SQL string, got {type(query).__name__}")


def _compound(op: str, first: QueryLike, second: QueryLike, dialect: Dialect) -> QueryFragment:
    a, b = as_fragment(first), as_fragment(second)
    if dialect.parenthesize_compound:
        sql = f"({a.sql}) {op} ({b.sql})"
    else:
        sql = f"{a.sql} {op} {b.sql}"
    return QueryFragment(sql, a.params + b.params)


def union(first: QueryLike, second: QueryLike, all: bool = False,
          *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _compound("UNION ALL" if all else "UNION", first, second, dialect)


def intersect(first: QueryLike, second: QueryLike, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _compound("INTERSECT", first, second, dialect)


def except_(first: QueryLike, second: QueryLike, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _compound("EXCEPT", first, second, dialect)


# --- clause helpers ---

def group_by(columns: Union[str, Sequence[str]], *, dialect: Dialect = DEFAULT_DIALECT) -> Expr:
    if isinstance(columns, str):
        columns = [columns]
    return Expr("GROUP BY " + ", ".join(sanitize_column(c, dialect=dialect) for c in columns))


def having(condition: str) -> Expr:
    """``HAVING <condition>``; the condition is trusted SQL text."""
    return Expr(f"HAVING {condition}")
