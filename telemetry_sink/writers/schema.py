"""Destination table DDL derived from the record layouts."""

import logging
from contextlib import closing
from typing import Dict, Union

from ..errors import ExecutionError
from ..records import SchemaVersion
from .connection import Backend, open_connection
from .query import ColumnType, RecordKind, get_layout, validate_table_name

logger = logging.getLogger(__name__)

# mssql has no BOOLEAN and TEXT cannot be indexed; mysql needs a length on keys
COLUMN_TYPES: Dict[Backend, Dict[ColumnType, str]] = {
    Backend.SQLITE: {
        ColumnType.ID: "TEXT PRIMARY KEY",
        ColumnType.TEXT: "TEXT",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.INTEGER: "INTEGER",
    },
    Backend.MYSQL: {
        ColumnType.ID: "VARCHAR(36) PRIMARY KEY",
        ColumnType.TEXT: "TEXT",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.INTEGER: "INTEGER",
    },
    Backend.POSTGRES: {
        ColumnType.ID: "VARCHAR(36) PRIMARY KEY",
        ColumnType.TEXT: "TEXT",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.INTEGER: "INTEGER",
    },
    Backend.MSSQL: {
        ColumnType.ID: "VARCHAR(36) PRIMARY KEY",
        ColumnType.TEXT: "NVARCHAR(MAX)",
        ColumnType.BOOLEAN: "BIT",
        ColumnType.INTEGER: "INT",
    },
}


def create_table_sql(kind: Union[RecordKind, str], version: Union[SchemaVersion, str],
                     table: str, backend: Union[Backend, str]) -> str:
    """
    Render the CREATE TABLE statement for a record layout.

    Columns are declared in the exact order the query builder emits values.
    """
    layout = get_layout(RecordKind(kind), SchemaVersion.parse(version))
    types = COLUMN_TYPES[Backend.parse(backend)]
    columns = ",\n".join(
        f"    {column.name} {types[column.type]}" for column in layout.columns
    )
    table = validate_table_name(table)
    if Backend.parse(backend) is Backend.MSSQL:
        return (
            f"IF OBJECT_ID(N'{table}', N'U') IS NULL\n"
            f"CREATE TABLE {table} (\n{columns}\n);\n"
        )
    return f"CREATE TABLE IF NOT EXISTS {table} (\n{columns}\n);\n"


def ensure_table(kind: Union[RecordKind, str], version: Union[SchemaVersion, str],
                 table: str, backend: Union[Backend, str], conn_string: str) -> None:
    """Create the destination table for a layout if it does not exist."""
    ddl = create_table_sql(kind, version, table, backend)
    with closing(open_connection(backend, conn_string)) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(ddl)
        except Exception as e:
            logger.error(f"Failed to create table {table}: {e}")
            raise ExecutionError(f"failed to create table {table}: {e}") from e
        finally:
            cursor.close()
    logger.info(f"Ensured table {table} for {RecordKind(kind).value} records")
