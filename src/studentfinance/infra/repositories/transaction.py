"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ...errors import StorageError
from ...models.transaction import Transaction
from ..database import SessionFactory
from .base import mark_saved, overwrite_rows, was_saved


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    collection = "transactions"

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def load_all(self) -> Optional[list[Transaction]]:
        """Return every saved transaction ordered by date, or None if never saved."""
        try:
            with self.session_factory() as session:
                if not was_saved(session, self.collection):
                    return None
                statement = select(Transaction).order_by(Transaction.date)  # type: ignore[arg-type]
                rows = list(session.exec(statement).all())
                session.expunge_all()
                return rows
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc

    def save_all(self, transactions: list[Transaction]) -> None:
        """Overwrite the stored transactions."""
        try:
            with self.session_factory() as session:
                overwrite_rows(session, Transaction, transactions)
                mark_saved(session, self.collection)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc
