"""Pool repository protocol."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from ...models.pool import Pool


class PoolRepository(Protocol):
    """Persistence for the pool list of each account."""

    def load_for_account(self, account_id: UUID) -> list[Pool]:
        """Return the account's pools in order (empty when none)."""
        ...

    def save_for_account(self, account_id: UUID, pools: list[Pool]) -> None:
        """Overwrite the pool list of one account."""
        ...

    def delete_for_account(self, account_id: UUID) -> None:
        """Drop every pool of an account."""
        ...
