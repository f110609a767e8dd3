"""Error taxonomy for sqlcommands.

Build-time problems (bad arguments, dialect-incompatible constructs) are
raised immediately. Sandbox validation raises ``PermissionDenied`` before
anything reaches the engine. Engine failures during execution are *not*
raised: the sandbox returns them as ``Failure`` results.
"""
from __future__ import annotations


class SqlCommandsError(Exception):
    """Base class for every error raised by this package."""

    kind = "SqlCommandsError"


class ArgumentError(SqlCommandsError, ValueError):
    """Invalid caller input detected while building or submitting a query."""

    kind = "ArgumentError"


class UnsupportedOperation(SqlCommandsError, NotImplementedError):
    """The requested construct is not available in the selected dialect."""

    kind = "UnsupportedOperation"


class PermissionDenied(SqlCommandsError, ValueError):
    """The statement verb or content is not permitted by the execution policy."""

    kind = "PermissionDenied"


class ExecutionError(SqlCommandsError):
    """The engine rejected a statement.

    Only raised by convenience helpers that cannot return a ``Failure``
    value (e.g. DataFrame export).
    """

    kind = "ExecutionError"

    def __init__(self, message: str, sql: str = ""):
        super().__init__(message)
        self.message = message
        self.sql = sql
