"""Service module exports."""

from . import (
    balances,
    budgeting,
    coordinator,
    export_csv,
    importers,
    ledger_service,
    pools,
    recurring,
)

__all__ = [
    "balances",
    "budgeting",
    "coordinator",
    "export_csv",
    "importers",
    "ledger_service",
    "pools",
    "recurring",
]
