"""Immutable values passed between the builder layers and the sandbox."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from ..errors import ArgumentError

Scalar = Any


class Expr(str):
    """Trusted SQL text (function calls, clause snippets, quoted literals).

    The identifier sanitizer passes ``Expr`` values through untouched, so
    never wrap caller-controlled input in one.
    """

    __slots__ = ()


def _as_params(params: Iterable[Scalar]) -> Tuple[Scalar, ...]:
    return tuple(params or ())


@dataclass(frozen=True)
class QueryFragment:
    """A complete or partial statement: ``sql`` plus its positional params.

    The i-th ``?`` in ``sql`` binds to ``params[i]``.
    """

    sql: str
    params: Tuple[Scalar, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "params", _as_params(self.params))

    @property
    def placeholder_count(self) -> int:
        return self.sql.count("?")

    def to_dict(self) -> Dict[str, Any]:
        return {"sql": self.sql, "params": list(self.params)}


@dataclass(frozen=True)
class PredicateFragment:
    """A boolean (or scalar) expression with its positional params."""

    expression: str
    params: Tuple[Scalar, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "params", _as_params(self.params))

    def __str__(self) -> str:
        return self.expression

    def to_dict(self) -> Dict[str, Any]:
        return {"expression": self.expression, "params": list(self.params)}


def literal(value: Any) -> Expr:
    """Render a Python value as inline SQL literal text.

    Strings are single-quoted with embedded quotes doubled. This is quote
    escaping, not parameter binding.
    """
    if value is None:
        return Expr("NULL")
    if isinstance(value, bool):
        return Expr("1" if value else "0")
    if isinstance(value, float) and not math.isfinite(value):
        raise ArgumentError(f"Cannot render {value!r} as a SQL literal")
    if isinstance(value, (int, float)):
        return Expr(repr(value))
    text = str(value).replace("'", "''")
    return Expr(f"'{text}'")
