"""User preferences DTO persisted as AppSetting rows."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Iterable

from .settings import AppSetting

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class UserPreferences:
    """Display and onboarding preferences for the single local user."""

    user_name: str = ""
    theme_color_name: str = "Blue"
    has_completed_onboarding: bool = False
    currency_symbol: str = "£"
    locale: str = "en_GB"

    def to_settings(self) -> list[AppSetting]:
        rows = []
        for name, value in asdict(self).items():
            text = str(value).lower() if isinstance(value, bool) else str(value)
            rows.append(AppSetting(key=f"preferences.{name}", value=text))
        return rows

    @classmethod
    def from_settings(cls, rows: Iterable[AppSetting]) -> "UserPreferences":
        values = {row.key.removeprefix("preferences."): row.value for row in rows}
        prefs = cls()
        for field in fields(cls):
            if field.name not in values:
                continue
            raw = values[field.name]
            if field.type in (bool, "bool"):
                setattr(prefs, field.name, raw.strip().lower() in _TRUE_VALUES)
            else:
                setattr(prefs, field.name, raw)
        return prefs
