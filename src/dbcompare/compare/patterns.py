"""
Table exclusion patterns.

Exclusion entries use SQL LIKE wildcards and are matched against the
``schema.table`` name of each candidate table:

- ``%`` matches any run of characters (including none)
- ``_`` matches exactly one character

Matching is case-insensitive and anchored at both ends, so ``staging.%``
excludes every table in the ``staging`` schema but not ``dbo.staging``.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExclusionPattern:
    """A compiled exclusion entry."""

    pattern: str
    regex: re.Pattern = field(repr=False, compare=False)

    def matches(self, candidate: str) -> bool:
        """Return True if ``candidate`` matches the whole pattern."""
        return self.regex.fullmatch(candidate) is not None


def wildcard_to_regex(pattern: str) -> str:
    """
    Translate a LIKE-style wildcard into an anchored regular expression

    Regex metacharacters in the input are escaped first, then the
    wildcards are substituted. ``re.escape`` leaves ``%`` and ``_``
    untouched, so the substitution never sees an escaped wildcard.

    Args:
        pattern: Wildcard pattern (e.g. ``"%.tmp_%"``)

    Returns:
        Regular expression source anchored with ``^`` and ``$``
    """
    escaped = re.escape(pattern)
    translated = escaped.replace("%", ".*").replace("_", ".")
    return f"^{translated}$"


def compile_pattern(pattern: str) -> ExclusionPattern:
    """
    Compile a wildcard pattern into an ExclusionPattern

    Args:
        pattern: Wildcard pattern using ``%`` and ``_``

    Returns:
        Compiled, case-insensitive ExclusionPattern

    Raises:
        ValueError: If pattern is not a non-empty string
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise ValueError(f"Invalid exclusion pattern: {pattern!r}")

    regex = re.compile(wildcard_to_regex(pattern.strip()), re.IGNORECASE | re.DOTALL)
    return ExclusionPattern(pattern=pattern.strip(), regex=regex)


def compile_patterns(patterns: Iterable[str]) -> list[ExclusionPattern]:
    """Compile every entry of ``patterns``, preserving order."""
    return [compile_pattern(p) for p in patterns]


def is_excluded(table_full_name: str, patterns: Iterable[ExclusionPattern]) -> bool:
    """
    Check whether a table is excluded by any pattern

    Args:
        table_full_name: ``schema.table`` name
        patterns: Compiled exclusion patterns

    Returns:
        True if any pattern matches; False for an empty pattern list
    """
    return any(p.matches(table_full_name) for p in patterns)
