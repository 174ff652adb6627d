"""Category repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.category import Category, CategoryType


class CategoryRepository(Protocol):
    """Persistence for categories, one collection per category type."""

    def load_all(self, category_type: CategoryType) -> Optional[list[Category]]:
        """Return categories of one type, or None if that list was never saved."""
        ...

    def save_all(self, category_type: CategoryType, categories: list[Category]) -> None:
        """Overwrite the stored categories of ``category_type``."""
        ...
