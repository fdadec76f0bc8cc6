"""
Per-row fingerprinting.

Every row is reduced to one fingerprint: the base64 SHA-256 digest of the
concatenation of all its column values, each converted to ``NVARCHAR(MAX)``
with NULL mapped to the empty string. Column order follows the column list
passed in, which must be the same for both sides of a comparison.

Two interchangeable hashers are provided:

- ``ServerRowHasher`` lets SQL Server compute ``HASHBYTES('SHA2_256', ...)``
  and only transfers the 32-byte digest per row.
- ``ClientRowHasher`` transfers the normalized row text and hashes it in
  process. It hashes the UTF-16LE encoding of the text, which is exactly the
  byte sequence ``HASHBYTES`` sees for an ``NVARCHAR`` argument, so both
  hashers yield identical fingerprints for identical rows.
"""

import base64
import hashlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any

import pyodbc

from dbcompare.errors import QueryError

from .quoting import quote_sqlserver_identifier, quote_table
from .schema import TableRef

logger = logging.getLogger(__name__)

# Encoding of NVARCHAR data as seen by HASHBYTES
ROW_TEXT_ENCODING = "utf-16-le"

DEFAULT_FETCH_SIZE = 5000


def fingerprint_text(row_text: str) -> str:
    """
    Fingerprint an already normalized row text

    Args:
        row_text: Concatenated column values, NULLs already mapped to ""

    Returns:
        Base64-encoded SHA-256 digest
    """
    digest = hashlib.sha256(row_text.encode(ROW_TEXT_ENCODING)).digest()
    return base64.b64encode(digest).decode("ascii")


def normalized_concat_expression(columns: Sequence[str]) -> str:
    """
    Build the SQL expression producing the normalized row text

    ``CONCAT`` needs at least two arguments, so a single column is
    emitted on its own.

    Args:
        columns: Column names in ordinal order (non-empty)

    Returns:
        SQL expression of type NVARCHAR(MAX)

    Raises:
        ValueError: If columns is empty
    """
    if not columns:
        raise ValueError("At least one column is required to fingerprint a row")

    parts = [
        f"ISNULL(CONVERT(NVARCHAR(MAX), {quote_sqlserver_identifier(col)}), '')"
        for col in columns
    ]

    if len(parts) == 1:
        return parts[0]
    return f"CONCAT({', '.join(parts)})"


class RowHasher(ABC):
    """Strategy producing one fingerprint per row."""

    mode: str = ""

    @abstractmethod
    def select_expression(self, columns: Sequence[str]) -> str:
        """Return the SQL expression selected once per row."""

    @abstractmethod
    def to_fingerprint(self, value: Any) -> str:
        """Convert the selected value of one row into a fingerprint."""


class ServerRowHasher(RowHasher):
    """Compute the digest in SQL Server with HASHBYTES."""

    mode = "server"

    def select_expression(self, columns: Sequence[str]) -> str:
        return f"HASHBYTES('SHA2_256', {normalized_concat_expression(columns)})"

    def to_fingerprint(self, value: Any) -> str:
        return base64.b64encode(bytes(value)).decode("ascii")


class ClientRowHasher(RowHasher):
    """Fetch the normalized row text and hash it with hashlib."""

    mode = "client"

    def select_expression(self, columns: Sequence[str]) -> str:
        return normalized_concat_expression(columns)

    def to_fingerprint(self, value: Any) -> str:
        return self.hash(value or "")

    def hash(self, row_text: str) -> str:
        return fingerprint_text(row_text)


HASHERS: dict[str, type[RowHasher]] = {
    ServerRowHasher.mode: ServerRowHasher,
    ClientRowHasher.mode: ClientRowHasher,
}


def get_hasher(mode: str) -> RowHasher:
    """
    Create a hasher by mode name

    Args:
        mode: ``"server"`` or ``"client"``

    Returns:
        RowHasher instance

    Raises:
        ValueError: If mode is unknown
    """
    try:
        return HASHERS[mode.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown hash mode: {mode!r} (expected one of {sorted(HASHERS)})"
        ) from None


def build_fingerprint_query(
    table: TableRef,
    columns: Sequence[str],
    hasher: RowHasher,
) -> str:
    """
    Build the query that emits one fingerprint value per row

    Args:
        table: Table to read
        columns: Column names in ordinal order (non-empty)
        hasher: Hashing strategy

    Returns:
        SELECT statement with a single ``HashVal`` column
    """
    expression = hasher.select_expression(columns)
    return f"SELECT {expression} AS HashVal FROM {quote_table(table.schema, table.name)}"


def fingerprint_rows(
    connection: Any,
    table: TableRef,
    columns: Sequence[str],
    hasher: RowHasher,
    fetch_size: int = DEFAULT_FETCH_SIZE,
) -> Iterator[str]:
    """
    Stream the fingerprints of every row of a table

    Rows are pulled with ``fetchmany`` so at most ``fetch_size`` rows are
    held in memory at a time. Order is whatever the database returns.

    Args:
        connection: Open DB-API connection (pyodbc)
        table: Table to read
        columns: Column names in ordinal order (non-empty)
        hasher: Hashing strategy
        fetch_size: Rows per fetch

    Yields:
        One fingerprint string per row

    Raises:
        QueryError: If the query or a fetch fails
    """
    query = build_fingerprint_query(table, columns, hasher)
    logger.debug(f"Fingerprint query for {table.full_name}: {query}")

    cursor = connection.cursor()
    try:
        try:
            cursor.execute(query)
        except pyodbc.Error as e:
            raise QueryError(f"Fingerprint query failed for {table.full_name}: {e}") from e

        while True:
            try:
                rows = cursor.fetchmany(fetch_size)
            except pyodbc.Error as e:
                raise QueryError(f"Fetch failed for {table.full_name}: {e}") from e

            if not rows:
                break

            for row in rows:
                yield hasher.to_fingerprint(row[0])
    finally:
        cursor.close()
