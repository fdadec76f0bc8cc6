"""
Table comparison engine.

This subpackage holds the pieces of a comparison run:
- Wildcard exclusion patterns (``schema.table`` with ``%`` and ``_``)
- User table and column enumeration
- Row fingerprinting, server-side or client-side
- Disk-backed fingerprint storage and mismatch counting
- The driver that runs all of the above table by table
"""

from .diff import count_missing, count_missing_stores
from .driver import ComparisonDriver, RunSummary, TableResult, TableStatus
from .fingerprint import (
    ClientRowHasher,
    RowHasher,
    ServerRowHasher,
    build_fingerprint_query,
    fingerprint_rows,
    fingerprint_text,
    get_hasher,
)
from .patterns import ExclusionPattern, compile_pattern, compile_patterns, is_excluded
from .quoting import quote_sqlserver_identifier, quote_table
from .schema import TableRef, list_columns, list_user_tables
from .store import FingerprintStore

__all__ = [
    'ComparisonDriver',
    'RunSummary',
    'TableResult',
    'TableStatus',
    'ExclusionPattern',
    'compile_pattern',
    'compile_patterns',
    'is_excluded',
    'TableRef',
    'list_user_tables',
    'list_columns',
    'RowHasher',
    'ServerRowHasher',
    'ClientRowHasher',
    'get_hasher',
    'build_fingerprint_query',
    'fingerprint_rows',
    'fingerprint_text',
    'FingerprintStore',
    'count_missing',
    'count_missing_stores',
    'quote_sqlserver_identifier',
    'quote_table',
]
