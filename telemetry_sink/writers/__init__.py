"""Database writers for telemetry records."""

from .connection import Backend, open_connection
from .query import Query, build_event_insert, build_script_insert
from .schema import create_table_sql, ensure_table
from .sql import GenericSQLWriter, Result, commit_sql

__all__ = [
    "Backend",
    "open_connection",
    "Query",
    "build_event_insert",
    "build_script_insert",
    "create_table_sql",
    "ensure_table",
    "GenericSQLWriter",
    "Result",
    "commit_sql",
]
