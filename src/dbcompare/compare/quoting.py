"""
SQL Server identifier quoting for SQL injection protection.

Table and column names come from the database catalog and may contain
spaces, non-ASCII letters, or even closing brackets. Instead of rejecting
such names, identifiers are wrapped in brackets with ``]`` doubled, which is
the quoting rule SQL Server applies to delimited identifiers.
"""

# sysname is nvarchar(128)
MAX_IDENTIFIER_LENGTH = 128


def quote_sqlserver_identifier(identifier: str) -> str:
    """
    Quote a single SQL Server identifier using bracket quoting

    Args:
        identifier: Schema, table, or column name (unquoted)

    Returns:
        Bracket-quoted identifier, e.g. ``[Order Details]``

    Raises:
        ValueError: If identifier is empty, too long, or contains NUL
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(
            f"Invalid identifier: {identifier[:32]!r}... exceeds "
            f"{MAX_IDENTIFIER_LENGTH} characters"
        )

    if "\x00" in identifier:
        raise ValueError(f"Invalid identifier: {identifier!r} contains NUL")

    return "[" + identifier.replace("]", "]]") + "]"


def quote_table(schema: str, table: str) -> str:
    """
    Quote a schema-qualified table name

    Args:
        schema: Schema name
        table: Table name

    Returns:
        ``[schema].[table]`` with both parts quoted
    """
    return f"{quote_sqlserver_identifier(schema)}.{quote_sqlserver_identifier(table)}"
