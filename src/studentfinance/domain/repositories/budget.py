"""Budget repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.budget import Budget


class BudgetRepository(Protocol):
    """Whole-collection persistence for budgets."""

    def load_all(self) -> Optional[list[Budget]]:
        """Return every saved budget, or None if never saved."""
        ...

    def save_all(self, budgets: list[Budget]) -> None:
        """Overwrite the stored budgets with ``budgets``."""
        ...
