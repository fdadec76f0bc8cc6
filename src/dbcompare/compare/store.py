"""
Disk-backed fingerprint storage.

Fingerprints for one (table, side) are streamed to a text file, one per
line, so capture needs constant memory no matter how large the table is.
Only the side loaded back with ``as_set()`` is ever held in memory.

File names are derived from side, schema, and table so a rerun overwrites
the previous artifact instead of accumulating new ones. Parallel runs pass
a ``run_id`` to keep concurrently written files apart.
"""

import hashlib
import logging
import re
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path

from dbcompare.errors import StorageCleanupError

from .schema import TableRef

logger = logging.getLogger(__name__)

SIDE_OLD = "old"
SIDE_NEW = "new"
SIDES = (SIDE_OLD, SIDE_NEW)

_UNSAFE_CHARS = re.compile(r"[^\w.-]+")


def safe_name(name: str) -> str:
    """
    Return a filesystem-safe version of a schema or table name

    When characters had to be replaced, a short digest of the original name
    is appended so distinct names cannot collapse onto the same file.
    """
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("_") or "unnamed"
    if cleaned != name:
        digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:8]
        cleaned = f"{cleaned}-{digest}"
    return cleaned


def store_path(
    directory: Path,
    table: TableRef,
    side: str,
    run_id: str | None = None,
) -> Path:
    """
    Build the backing file path for one (table, side)

    ``a_b.c`` and ``a.b_c`` share the readable stem ``a_b_c``. That is
    harmless for sequential runs, where only one table's files exist at a
    time, but tables compared concurrently need distinct files, so a
    ``run_id`` name also carries a digest of the exact schema and table.

    Args:
        directory: Storage directory
        table: Table being compared
        side: ``"old"`` or ``"new"``
        run_id: Optional suffix that makes the name unique per run

    Returns:
        Path such as ``<dir>/old_hash_dbo_Customers.txt``
    """
    if side not in SIDES:
        raise ValueError(f"Invalid side: {side!r}")

    stem = f"{side}_hash_{safe_name(table.schema)}_{safe_name(table.name)}"
    if run_id:
        stem = f"{stem}_{table_digest(table)}_{run_id}"
    return Path(directory) / f"{stem}.txt"


def table_digest(table: TableRef) -> str:
    """Return a short digest identifying ``table`` exactly (case and separators included)."""
    key = f"{table.schema}\x00{table.name}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]


class FingerprintStore:
    """
    Fingerprints of one table side, persisted one per line

    Usage:
        with FingerprintStore(table, "new", directory) as store:
            store.capture(fingerprint_rows(...))
            membership = store.as_set()
    """

    def __init__(
        self,
        table: TableRef,
        side: str,
        directory: Path | str | None = None,
        run_id: str | None = None,
    ):
        self.table = table
        self.side = side
        self.directory = Path(directory) if directory else Path(tempfile.gettempdir())
        self.path = store_path(self.directory, table, side, run_id)
        self.count = 0

    def capture(self, fingerprints: Iterable[str]) -> int:
        """
        Write fingerprints to the backing file, replacing previous content

        Args:
            fingerprints: Lazy sequence of fingerprint strings

        Returns:
            Number of fingerprints written
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        count = 0

        with self.path.open("w", encoding="utf-8", newline="\n") as f:
            for fingerprint in fingerprints:
                f.write(fingerprint)
                f.write("\n")
                count += 1

        self.count = count
        logger.debug(
            f"Captured {count} {self.side} fingerprint(s) for "
            f"{self.table.full_name} to {self.path}"
        )
        return count

    def iter_fingerprints(self) -> Iterator[str]:
        """Replay stored fingerprints line by line, in file order."""
        with self.path.open("r", encoding="utf-8", newline="\n") as f:
            for line in f:
                yield line.rstrip("\n")

    def as_set(self) -> set[str]:
        """Load stored fingerprints into a membership set (duplicates collapse)."""
        return set(self.iter_fingerprints())

    def remove(self) -> None:
        """
        Remove the backing file

        Raises:
            StorageCleanupError: If the file exists but cannot be deleted
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageCleanupError(f"Could not remove {self.path}: {e}") from e

    def dispose(self) -> None:
        """
        Remove the backing file, logging instead of raising on failure

        A stale file is harmless: the next capture of the same table
        overwrites it.
        """
        try:
            self.remove()
        except StorageCleanupError as e:
            logger.warning(f"Fingerprint file cleanup failed: {e}")

    def __enter__(self) -> "FingerprintStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
