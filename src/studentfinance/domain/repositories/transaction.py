"""Transaction repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Whole-collection persistence for transactions."""

    def load_all(self) -> Optional[list[Transaction]]:
        """Return every saved transaction, or None if never saved."""
        ...

    def save_all(self, transactions: list[Transaction]) -> None:
        """Overwrite the stored transactions with ``transactions``."""
        ...
