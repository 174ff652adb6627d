"""Settings repository for user preferences."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from ...errors import StorageError
from ...models.preferences import UserPreferences
from ...models.settings import AppSetting
from ..database import SessionFactory

_PREFIX = "preferences."


class SQLModelSettingsRepository:
    """SQLModel-based settings repository."""

    collection = "preferences"

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def load_preferences(self) -> Optional[UserPreferences]:
        try:
            with self.session_factory() as session:
                rows = session.exec(
                    select(AppSetting).where(col(AppSetting.key).startswith(_PREFIX))
                ).all()
                if not rows:
                    return None
                return UserPreferences.from_settings(rows)
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc

    def save_preferences(self, preferences: UserPreferences) -> None:
        try:
            with self.session_factory() as session:
                for row in preferences.to_settings():
                    session.merge(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(self.collection, str(exc)) from exc
