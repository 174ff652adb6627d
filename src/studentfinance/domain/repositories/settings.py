"""Preferences repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.preferences import UserPreferences


class SettingsRepository(Protocol):
    """Persistence for user preferences."""

    def load_preferences(self) -> Optional[UserPreferences]:
        """Return saved preferences, or None on first launch."""
        ...

    def save_preferences(self, preferences: UserPreferences) -> None:
        """Overwrite the stored preferences."""
        ...
