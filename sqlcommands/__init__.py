# sqlcommands - safe SQL statement building and sandboxed execution
"""
sqlcommands - parameterised SQL builders plus a policy-checked SQLite sandbox.
"""

__version__ = "0.1.0"

from .config import ExecutionPolicy
from .dialect import Dialect
from .errors import (
    SqlCommandsError,
    ArgumentError,
    UnsupportedOperation,
    PermissionDenied,
    ExecutionError,
)
from .sql import QueryFragment, PredicateFragment, SelectOptions, Sandbox
from .sql import functions

__all__ = [
    "__version__",
    "Dialect",
    "ExecutionPolicy",
    "SqlCommandsError",
    "ArgumentError",
    "UnsupportedOperation",
    "PermissionDenied",
    "ExecutionError",
    "QueryFragment",
    "PredicateFragment",
    "SelectOptions",
    "Sandbox",
    "functions",
]
