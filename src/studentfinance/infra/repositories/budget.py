"""SQLModel implementation of Budget repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ...errors import StorageError
from ...models.budget import Budget
from ..database import SessionFactory
from .base import mark_saved, overwrite_rows, was_saved


class SQLModelBudgetRepository:
    """SQLModel-based budget repository implementation."""

    collection = "budgets"

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def load_all(self) -> Optional[list[Budget]]:
        """Return every saved budget, or None if never saved."""
        try:
            with self.session_factory() as session:
                if not was_saved(session, self.collection):
                    return None
                statement = select(Budget).order_by(Budget.start_date, Budget.name)  # type: ignore[arg-type]
                rows = list(session.exec(statement).all())
                session.expunge_all()
                return rows
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc

    def save_all(self, budgets: list[Budget]) -> None:
        """Overwrite the stored budgets."""
        try:
            with self.session_factory() as session:
                overwrite_rows(session, Budget, budgets)
                mark_saved(session, self.collection)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc
