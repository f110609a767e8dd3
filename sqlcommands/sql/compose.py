"""CTEs and subqueries.

Params are always spliced in the order their ``?`` appear in the final
text. The one exception is ``exists``/``not_exists``: they return plain
text and drop the inner params, so the caller must bind those itself.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..dialect import DEFAULT_DIALECT, Dialect
from ..errors import ArgumentError
from .builder import QueryLike, as_fragment
from .fragments import Expr, PredicateFragment, QueryFragment
from .functions import alias as _alias
from .identifiers import sanitize_column, sanitize_table


def _with(keyword: str, ctes: Mapping[str, QueryLike], main: QueryLike, dialect: Dialect) -> QueryFragment:
    if not ctes:
        raise ArgumentError(f"{keyword} requires at least one common table expression")
    parts: List[str] = []
    params: List[Any] = []
    for name, query in ctes.items():
        frag = as_fragment(query)
        parts.append(f"{sanitize_table(name, dialect=dialect)} AS ({frag.sql})")
        params.extend(frag.params)
    body = as_fragment(main)
    params.extend(body.params)
    return QueryFragment(f"{keyword} {', '.join(parts)} {body.sql}", params)


def with_(ctes: Mapping[str, QueryLike], main: QueryLike, *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _with("WITH", ctes, main, dialect)


def with_recursive(ctes: Mapping[str, QueryLike], main: QueryLike,
                   *, dialect: Dialect = DEFAULT_DIALECT) -> QueryFragment:
    return _with("WITH RECURSIVE", ctes, main, dialect)


def exists(query: QueryLike) -> Expr:
    """``EXISTS (subquery)`` as trusted text, usable in ``SelectOptions.predicates``.

    Only the SQL is kept. When the subquery binds values, pass them along
    yourself: ``PredicateFragment(exists(q), q.params)``.
    """
    return Expr(f"EXISTS ({as_fragment(query).sql})")


def not_exists(query: QueryLike) -> Expr:
    return Expr(f"NOT EXISTS ({as_fragment(query).sql})")


def in_subquery(column: str, query: QueryLike, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    frag = as_fragment(query)
    return PredicateFragment(f"{sanitize_column(column, dialect=dialect)} IN ({frag.sql})", frag.params)


def not_in_subquery(column: str, query: QueryLike, *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    frag = as_fragment(query)
    return PredicateFragment(f"{sanitize_column(column, dialect=dialect)} NOT IN ({frag.sql})", frag.params)


def subquery_scalar(query: QueryLike, name: Optional[str] = None,
                    *, dialect: Dialect = DEFAULT_DIALECT) -> PredicateFragment:
    """``(SELECT ...)`` usable as a value, e.g. in a SELECT list."""
    frag = as_fragment(query)
    expression = f"({frag.sql})"
    if name:
        expression = str(_alias(Expr(expression), name, dialect=dialect))
    return PredicateFragment(expression, frag.params)
