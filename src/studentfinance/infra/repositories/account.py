"""SQLModel implementation of Account repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ...errors import StorageError
from ...models.account import Account
from ..database import SessionFactory
from .base import assign_positions, mark_saved, overwrite_rows, was_saved


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    collection = "accounts"

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def load_all(self) -> Optional[list[Account]]:
        """Return saved accounts in display order, or None if never saved."""
        try:
            with self.session_factory() as session:
                if not was_saved(session, self.collection):
                    return None
                statement = select(Account).order_by(Account.position)  # type: ignore[arg-type]
                rows = list(session.exec(statement).all())
                session.expunge_all()
                return rows
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc

    def save_all(self, accounts: list[Account]) -> None:
        """Overwrite the stored accounts."""
        try:
            with self.session_factory() as session:
                merged = overwrite_rows(session, Account, accounts)
                assign_positions(merged)
                mark_saved(session, self.collection)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc
