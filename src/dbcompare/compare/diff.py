"""
Set difference of fingerprints.

The mismatch count of a table is the number of old-side fingerprints that
do not occur anywhere on the new side. The new side is loaded into a set,
the old side is streamed against it. Duplicates on the new side collapse,
duplicates on the old side are each counted when missing: this is a
presence check per row, not a multiset difference.
"""

from collections.abc import Iterable

from .store import FingerprintStore


def count_missing(old_fingerprints: Iterable[str], new_fingerprints: Iterable[str]) -> int:
    """
    Count old fingerprints absent from the new fingerprints

    Args:
        old_fingerprints: Old-side fingerprints (streamed once)
        new_fingerprints: New-side fingerprints (materialized into a set)

    Returns:
        Number of old entries whose fingerprint is not in the new set
    """
    new_set = set(new_fingerprints)
    return sum(1 for fp in old_fingerprints if fp not in new_set)


def count_missing_stores(old_store: FingerprintStore, new_store: FingerprintStore) -> int:
    """
    Count old-side rows missing from the new side of a stored comparison

    Args:
        old_store: Captured old-side fingerprints
        new_store: Captured new-side fingerprints

    Returns:
        Mismatch count for the table
    """
    new_set = new_store.as_set()
    return sum(1 for fp in old_store.iter_fingerprints() if fp not in new_set)
