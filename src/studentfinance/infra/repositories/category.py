"""SQLModel implementation of Category repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ...errors import StorageError
from ...models.category import Category, CategoryType
from ..database import SessionFactory
from .base import assign_positions, mark_saved, overwrite_rows, was_saved


class SQLModelCategoryRepository:
    """SQLModel-based category repository; income and expense lists are separate."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    @staticmethod
    def _collection(category_type: CategoryType) -> str:
        return f"categories.{CategoryType(category_type).value}"

    def load_all(self, category_type: CategoryType) -> Optional[list[Category]]:
        """Return categories of one type, or None if never saved."""
        collection = self._collection(category_type)
        try:
            with self.session_factory() as session:
                if not was_saved(session, collection):
                    return None
                statement = (
                    select(Category)
                    .where(Category.category_type == category_type)
                    .order_by(Category.position)  # type: ignore[arg-type]
                )
                rows = list(session.exec(statement).all())
                session.expunge_all()
                return rows
        except SQLAlchemyError as exc:
            raise StorageError(collection, str(exc)) from exc

    def save_all(self, category_type: CategoryType, categories: list[Category]) -> None:
        """Overwrite the stored categories of one type."""
        collection = self._collection(category_type)
        try:
            with self.session_factory() as session:
                merged = overwrite_rows(
                    session, Category, categories, Category.category_type == category_type
                )
                assign_positions(merged)
                mark_saved(session, collection)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(collection, str(exc)) from exc
