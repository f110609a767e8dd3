"""SQL building and execution for sqlcommands."""
from .builder import (
    SelectOptions,
    select, insert, update, delete,
    create_table, alter_table, add_column, drop_column, rename_table, rename_column,
    drop_table, truncate_table, create_index, drop_index,
    show_tables, describe_table, use_database, pragma,
    inner_join, left_join, right_join, full_outer_join, cross_join,
    union, intersect, except_, group_by, having,
)
from .clauses import build_where, like, not_like, glob, regexp, between, starts_with, ends_with, contains
from .compose import with_, with_recursive, exists, not_exists, in_subquery, not_in_subquery, subquery_scalar
from .executor import Sandbox, Rows, Affected, Failure
from .fragments import Expr, PredicateFragment, QueryFragment, literal
from .identifiers import sanitize_table, sanitize_column, validate_table_name, validate_column_name

__all__ = [
    "SelectOptions",
    "select", "insert", "update", "delete",
    "create_table", "alter_table", "add_column", "drop_column", "rename_table", "rename_column",
    "drop_table", "truncate_table", "create_index", "drop_index",
    "show_tables", "describe_table", "use_database", "pragma",
    "inner_join", "left_join", "right_join", "full_outer_join", "cross_join",
    "union", "intersect", "except_", "group_by", "having",
    "build_where", "like", "not_like", "glob", "regexp", "between", "starts_with", "ends_with", "contains",
    "with_", "with_recursive", "exists", "not_exists", "in_subquery", "not_in_subquery", "subquery_scalar",
    "Sandbox", "Rows", "Affected", "Failure",
    "Expr", "PredicateFragment", "QueryFragment", "literal",
    "sanitize_table", "sanitize_column", "validate_table_name", "validate_column_name",
]
