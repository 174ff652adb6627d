"""Error taxonomy for the ledger core.

Validation problems block the offending operation before anything changes.
Referential inconsistencies are downgraded to warnings. Storage failures are
reported after the in-memory state has already been updated.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for ledger operations."""


class ValidationError(LedgerError):
    """Input rejected before mutation; collections are left untouched."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ReferentialInconsistency(LedgerError):
    """A reference pointed at an entity that no longer exists.

    Never raised out of the coordinator; instances are collected as warnings.
    """


class StorageError(LedgerError):
    """Persistence of a collection failed."""

    def __init__(self, collection: str, message: str = ""):
        super().__init__(f"{collection}: {message}" if message else collection)
        self.collection = collection


class PeriodComputationError(LedgerError):
    """Calendar arithmetic could not resolve a budget period boundary."""


__all__ = [
    "LedgerError",
    "PeriodComputationError",
    "ReferentialInconsistency",
    "StorageError",
    "ValidationError",
]
