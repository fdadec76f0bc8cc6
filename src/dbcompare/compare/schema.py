"""
Catalog queries for table and column enumeration.

Tables are listed from ``sys.tables`` (user tables only, shipped system
objects excluded) and columns from ``INFORMATION_SCHEMA.COLUMNS`` in
ordinal order. Column order matters: both sides are fingerprinted with the
column list read from the new database, so identical rows hash identically.
"""

import logging
from dataclasses import dataclass
from typing import Any

import pyodbc

from dbcompare.errors import QueryError

logger = logging.getLogger(__name__)


USER_TABLES_QUERY = """
SELECT s.name AS SchemaName, t.name AS TableName
FROM sys.tables t
JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE t.is_ms_shipped = 0
ORDER BY s.name, t.name
"""

COLUMNS_QUERY = """
SELECT COLUMN_NAME
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
ORDER BY ORDINAL_POSITION
"""


@dataclass(frozen=True, order=True)
class TableRef:
    """A user table identified by schema and name."""

    schema: str
    name: str

    @property
    def full_name(self) -> str:
        """Return ``schema.table`` as used for exclusion matching and output."""
        return f"{self.schema}.{self.name}"

    def __str__(self) -> str:
        return self.full_name


def list_user_tables(connection: Any) -> list[TableRef]:
    """
    List user tables ordered by schema then table name

    Args:
        connection: Open DB-API connection (pyodbc)

    Returns:
        List of TableRef

    Raises:
        QueryError: If the catalog query fails
    """
    cursor = connection.cursor()
    try:
        cursor.execute(USER_TABLES_QUERY)
        tables = [TableRef(schema=row[0], name=row[1]) for row in cursor.fetchall()]
    except pyodbc.Error as e:
        raise QueryError(f"Failed to list user tables: {e}") from e
    finally:
        cursor.close()

    logger.debug(f"Found {len(tables)} user table(s)")
    return tables


def list_columns(connection: Any, table: TableRef) -> list[str]:
    """
    List the columns of a table in ordinal position order

    An empty list is a valid result (unknown table or no columns); callers
    treat it as a table with nothing to compare.

    Args:
        connection: Open DB-API connection (pyodbc)
        table: Table to describe

    Returns:
        Column names in ordinal order

    Raises:
        QueryError: If the catalog query fails
    """
    cursor = connection.cursor()
    try:
        cursor.execute(COLUMNS_QUERY, (table.schema, table.name))
        columns = [row[0] for row in cursor.fetchall()]
    except pyodbc.Error as e:
        raise QueryError(f"Failed to list columns of {table.full_name}: {e}") from e
    finally:
        cursor.close()

    return columns
