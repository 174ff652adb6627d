"""Ledger and budget accounting core for a student finance tracker."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestConfig
from .context import LedgerContext, create_ledger_context

__all__ = ["BaseConfig", "DevConfig", "LedgerContext", "TestConfig", "create_ledger_context"]
