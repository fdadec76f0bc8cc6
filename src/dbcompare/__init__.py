"""
db-compare: row-level reconciliation of two SQL Server databases

Every user table present in the new database is fingerprinted row by row
on both sides, and the number of old-side rows whose fingerprint is absent
from the new side is reported per table and in total.

Components:
- compare: exclusion patterns, schema enumeration, fingerprinting, diffing
- report: comparison report generation
- scheduler: recurring comparison runs
- cli: the db-compare command

Usage:
    from dbcompare.config import load_settings
    from dbcompare.compare import ComparisonDriver
"""

__version__ = "1.0.0"
__all__ = ["cli", "compare", "config", "errors", "report", "runner", "scheduler", "utils"]
