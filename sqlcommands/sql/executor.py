"""Execution sandbox: validate, run against SQLite, normalise the outcome.

Permission problems raise ``PermissionDenied`` before the engine is touched.
Engine errors never escape ``execute``; they come back as ``Failure``.
"""
from __future__ import annotations

import logging
import re
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from ..config import ExecutionPolicy, default_db_path
from ..dialect import Dialect
from ..errors import ArgumentError, ExecutionError, PermissionDenied
from .builder import describe_table, drop_table, show_tables
from .fragments import QueryFragment
from .safety import INTROSPECTION_POLICY, returns_rows, validate_operation

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


@dataclass(frozen=True)
class Rows:
    data: List[Dict[str, Any]]
    row_count: int
    columns: Tuple[str, ...] = ()
    sql: str = ""
    success = True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "data": self.data, "rowCount": self.row_count}

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.data, columns=list(self.columns) or None)


@dataclass(frozen=True)
class Affected:
    count: int
    sql: str = ""
    success = True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "affectedRows": self.count}


@dataclass(frozen=True)
class Failure:
    message: str
    sql: str = ""
    kind: str = ExecutionError.kind
    success = False

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


Result = Union[Rows, Affected, Failure]


def _regexp(pattern: str, value: Any) -> bool:
    if value is None or pattern is None:
        return False
    return re.search(pattern, str(value)) is not None


def _coerce_query(query: Union[QueryFragment, Mapping[str, Any]]) -> QueryFragment:
    if isinstance(query, QueryFragment):
        return query
    if isinstance(query, Mapping):
        if "sql" not in query or "params" not in query:
            raise ArgumentError("Query data must contain sql and params keys")
        sql, params = query["sql"], query["params"]
        if not isinstance(sql, str):
            raise ArgumentError("Query sql must be a string")
        if params is None or isinstance(params, (str, bytes)) or not isinstance(params, Sequence):
            raise ArgumentError("Query params must be a list")
        return QueryFragment(sql, params)
    raise ArgumentError(f"Cannot execute {type(query).__name__}; expected a QueryFragment or mapping")


class Sandbox:
    """Owns one SQLite connection and runs policy-checked statements on it.

    Statements are serialised through a lock; each runs in autocommit mode
    so it either fully applies or not at all.
    """

    dialect = Dialect.SQLITE

    def __init__(self, db_path: Union[str, Path, None] = None, policy: Optional[ExecutionPolicy] = None):
        self.policy = policy or ExecutionPolicy()
        if db_path is None:
            db_path = default_db_path()
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        try:
            if self.db_path != MEMORY:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, isolation_level=None, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.create_function("REGEXP", 2, _regexp)
            self._conn.execute("PRAGMA foreign_keys = ON")
        except (sqlite3.Error, OSError) as e:
            raise ArgumentError(f"Cannot connect to database: {e}") from e
        logger.info(f"Sandbox opened {self.db_path} (allowed: {', '.join(self.policy.allowed_operations)})")

    def __enter__(self) -> "Sandbox":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
        logger.info(f"Sandbox closed {self.db_path}")

    def execute(self, query: Union[QueryFragment, Mapping[str, Any]]) -> Result:
        """Validate and run one statement.

        Raises ArgumentError for a malformed query and PermissionDenied when
        the policy rejects it; every engine error is returned as ``Failure``.
        """
        fragment = _coerce_query(query)
        return self._run(fragment, self.policy)

    def execute_raw(self, sql: str, params: Sequence[Any] = ()) -> Result:
        """Run caller-written SQL verbatim, subject to the same policy."""
        return self.execute({"sql": sql, "params": list(params)})

    def execute_to_dataframe(self, query: Union[QueryFragment, Mapping[str, Any]]) -> pd.DataFrame:
        result = self.execute(query)
        if isinstance(result, Failure):
            raise ExecutionError(result.message, result.sql)
        if isinstance(result, Affected):
            return pd.DataFrame()
        return result.to_dataframe()

    def _run(self, fragment: QueryFragment, policy: ExecutionPolicy) -> Result:
        try:
            verb = validate_operation(fragment.sql, policy)
        except PermissionDenied as e:
            logger.warning(f"Rejected statement: {e}")
            raise
        logger.debug(f"Executing {verb}: {fragment.sql} params={list(fragment.params)}")
        with self._lock:
            try:
                cursor = self._conn.execute(fragment.sql, fragment.params)
                if returns_rows(fragment.sql):
                    columns = tuple(d[0] for d in cursor.description or ())
                    data = [dict(row) for row in cursor.fetchall()]
                    return Rows(data=data, row_count=len(data), columns=columns, sql=fragment.sql)
                return Affected(count=max(cursor.rowcount, 0), sql=fragment.sql)
            except (sqlite3.Error, sqlite3.Warning, OverflowError) as e:
                logger.warning(f"Statement failed: {e} | {fragment.sql}")
                return Failure(message=str(e), sql=fragment.sql)

    def schema(self) -> Dict[str, List[Dict[str, Any]]]:
        """``{table: [column info rows]}`` for every user table."""
        tables = self._run(show_tables(dialect=self.dialect), INTROSPECTION_POLICY)
        if not isinstance(tables, Rows):
            return {}
        out = {}
        for row in tables.data:
            name = next(iter(row.values()))
            info = self._run(describe_table(name, dialect=self.dialect), INTROSPECTION_POLICY)
            out[name] = info.data if isinstance(info, Rows) else []
        return out

    def reset_database(self) -> Dict[str, Result]:
        """Drop every user table."""
        results = {}
        with self._lock:
            self._conn.execute("PRAGMA foreign_keys = OFF")
        try:
            for table in self.schema():
                results[table] = self._run(drop_table(table, dialect=self.dialect), self.policy)
        finally:
            with self._lock:
                self._conn.execute("PRAGMA foreign_keys = ON")
        logger.info(f"Reset {self.db_path}: dropped {len(results)} table(s)")
        return results

    def connection_info(self) -> Dict[str, Any]:
        return {
            "database_type": self.dialect.value,
            "engine_version": sqlite3.sqlite_version,
            "database_path": self.db_path,
        }
