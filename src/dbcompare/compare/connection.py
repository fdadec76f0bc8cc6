"""SQL Server connection handling."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pyodbc
from opentelemetry import trace

from dbcompare.errors import ConnectionFailure
from dbcompare.utils.tracing import trace_operation

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_TIMEOUT = 30


def describe_connection_string(conn_str: str) -> str:
    """Return ``SERVER/DATABASE`` from a connection string, without credentials."""
    values = {}
    for part in conn_str.split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            values[key.strip().upper()] = value.strip()

    server = values.get("SERVER") or values.get("DATA SOURCE") or "unknown"
    database = values.get("DATABASE") or values.get("INITIAL CATALOG") or "unknown"
    return f"{server}/{database}"


@contextmanager
def open_connection(
    conn_str: str,
    side: str = "",
    timeout: int = DEFAULT_LOGIN_TIMEOUT,
) -> Iterator[Any]:
    """
    Open an autocommit SQL Server connection and close it afterwards

    Args:
        conn_str: ODBC connection string
        side: ``"old"`` or ``"new"``, for tracing and error messages
        timeout: Login timeout in seconds

    Yields:
        Open pyodbc connection

    Raises:
        ConnectionFailure: If the connection cannot be established
    """
    target = describe_connection_string(conn_str)

    with trace_operation(
        "sqlserver_connect",
        kind=trace.SpanKind.CLIENT,
        db_side=side,
        db_target=target,
    ):
        try:
            conn = pyodbc.connect(conn_str, timeout=timeout, autocommit=True)
        except pyodbc.Error as e:
            raise ConnectionFailure(
                f"Could not connect to {side or 'database'} ({target}): {e}"
            ) from e

    try:
        yield conn
    finally:
        try:
            conn.close()
        except pyodbc.Error as e:
            logger.debug(f"Error closing {side} connection: {e}")
