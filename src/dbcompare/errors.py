"""
Exception hierarchy for database comparison.

Configuration problems are fatal and abort a run before any table is
compared. Comparison errors are scoped to a single table: the driver turns
them into an ERROR result for that table and moves on. Storage cleanup
errors are only ever logged.
"""


class DBCompareError(Exception):
    """Base exception for all db-compare errors."""

    pass


class ConfigurationError(DBCompareError):
    """Raised when connections or exclusion entries are missing or malformed."""

    pass


class ComparisonError(DBCompareError):
    """Base exception for failures while comparing a single table."""

    pass


class ConnectionFailure(ComparisonError):
    """Raised when a connection to the old or new database cannot be opened."""

    pass


class QueryError(ComparisonError):
    """Raised when a catalog or fingerprint query fails."""

    pass


class StorageCleanupError(DBCompareError):
    """Raised when a fingerprint file cannot be removed."""

    pass
