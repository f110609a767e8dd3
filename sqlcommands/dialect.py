from __future__ import annotations

from enum import Enum

from .errors import ArgumentError


class Dialect(Enum):
    """SQL generation flavours.

    ``SQLITE`` is the embedded-file engine the sandbox executes against;
    ``GENERIC`` targets a client/server engine (MySQL-like syntax).
    """

    SQLITE = "sqlite"
    GENERIC = "generic"

    @classmethod
    def from_name(cls, name: str) -> "Dialect":
        key = (name or "").strip().lower()
        if not key:
            raise ArgumentError("Dialect name cannot be empty")
        if key == cls.SQLITE.value:
            return cls.SQLITE
        return cls.GENERIC

    @property
    def quote(self) -> str:
        return "`"

    @property
    def concat_operator(self) -> str | None:
        # GENERIC uses the CONCAT() function instead of an operator
        return " || " if self is Dialect.SQLITE else None

    @property
    def supports_truncate(self) -> bool:
        return self is Dialect.GENERIC

    @property
    def supports_right_join(self) -> bool:
        return self is Dialect.GENERIC

    @property
    def supports_full_outer_join(self) -> bool:
        return self is Dialect.GENERIC

    @property
    def supports_pragma(self) -> bool:
        return self is Dialect.SQLITE

    @property
    def parenthesize_compound(self) -> bool:
        return self is Dialect.GENERIC


DEFAULT_DIALECT = Dialect.SQLITE
