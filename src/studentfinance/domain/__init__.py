"""Domain layer: state container and persistence ports."""

from .state import LedgerState

__all__ = ["LedgerState"]
