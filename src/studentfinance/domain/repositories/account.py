"""Account repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.account import Account


class AccountRepository(Protocol):
    """Whole-collection persistence for accounts."""

    def load_all(self) -> Optional[list[Account]]:
        """Return saved accounts in display order, or None if never saved."""
        ...

    def save_all(self, accounts: list[Account]) -> None:
        """Overwrite the stored accounts with ``accounts``."""
        ...
