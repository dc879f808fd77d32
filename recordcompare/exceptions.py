"""
Exception hierarchy for comparison runs.

A failed run never produces a partial result: every error below aborts the
comparison and reaches the caller.
"""

from typing import Any, Optional


class CompareError(Exception):
    """Base exception for all comparison errors."""

    pass


class InvalidExclusion(CompareError, ValueError):
    """
    Raised when an exclusion-list entry does not name a field of the record shape.

    Raised while building the comparable field set, before any source is read.
    """

    def __init__(self, name: str, shape: str):
        self.name = name
        self.shape = shape
        super().__init__(f"Field '{name}' is not on record shape '{shape}'")


class SourceUnavailable(CompareError):
    """
    Raised when fetching the records of one side fails.

    The underlying error (connectivity, auth, timeout, unreadable file) is
    chained as ``__cause__``. Not retried by the comparison core.
    """

    def __init__(self, side: str, source: str, reason: str):
        self.side = side
        self.source = source
        self.reason = reason
        super().__init__(f"{side} source '{source}' unavailable: {reason}")


class DuplicateKeyError(CompareError):
    """
    Raised in strict-key mode when two records of one side share an identity key.

    Without strict mode the later record replaces the earlier one.
    """

    def __init__(self, side: str, key: Any, source: Optional[str] = None):
        self.side = side
        self.key = key
        self.source = source
        where = f" in '{source}'" if source else ""
        super().__init__(f"Duplicate identity key {key!r} on {side} side{where}")
