"""SQLModel implementation of Pool repository."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ...errors import StorageError
from ...models.pool import Pool
from ..database import SessionFactory
from .base import assign_positions, overwrite_rows


class SQLModelPoolRepository:
    """SQLModel-based pool repository, one pool list per account."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    @staticmethod
    def _collection(account_id: UUID) -> str:
        return f"pools.{account_id}"

    def load_for_account(self, account_id: UUID) -> list[Pool]:
        """Return the account's pools in order."""
        try:
            with self.session_factory() as session:
                statement = (
                    select(Pool)
                    .where(Pool.account_id == account_id)
                    .order_by(Pool.position)  # type: ignore[arg-type]
                )
                rows = list(session.exec(statement).all())
                session.expunge_all()
                return rows
        except SQLAlchemyError as exc:
            raise StorageError(self._collection(account_id), str(exc)) from exc

    def save_for_account(self, account_id: UUID, pools: list[Pool]) -> None:
        """Overwrite the pool list of one account."""
        try:
            with self.session_factory() as session:
                merged = overwrite_rows(session, Pool, pools, Pool.account_id == account_id)
                assign_positions(merged)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(self._collection(account_id), str(exc)) from exc

    def delete_for_account(self, account_id: UUID) -> None:
        """Drop every pool of an account."""
        self.save_for_account(account_id, [])
