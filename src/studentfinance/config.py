"""Application configuration objects and helpers."""

from __future__ import annotations

import calendar
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

_WEEKDAY_NAMES = {name.lower(): index for index, name in enumerate(calendar.day_name)}


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_weekday(raw: str | None, default: int = calendar.MONDAY) -> int:
    """Turn a weekday name ("sunday") or number (0=Monday .. 6=Sunday) into an int."""

    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _WEEKDAY_NAMES:
        return _WEEKDAY_NAMES[value]
    try:
        number = int(value)
    except ValueError as exc:
        raise ValueError(f"Unrecognised weekday: {raw!r}") from exc
    if not 0 <= number <= 6:
        raise ValueError(f"Weekday index out of range: {number}")
    return number


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "StudentFinance"
    DB_FILENAME = "studentfinance.db"
    ENV_PREFIX = "STUDENTFINANCE_"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool(f"{self.ENV_PREFIX}DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv(f"{self.ENV_PREFIX}DATABASE_URL", self._build_sqlite_url())
        self.WEEK_START = parse_weekday(os.getenv(f"{self.ENV_PREFIX}WEEK_START"))
        self.CURRENCY_SYMBOL = os.getenv(f"{self.ENV_PREFIX}CURRENCY_SYMBOL", "£")
        self.LOCALE = os.getenv(f"{self.ENV_PREFIX}LOCALE", "en_GB")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv(f"{self.ENV_PREFIX}DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Throwaway in-memory database for tests."""

    DEBUG = False
    TESTING = True
    __test__ = False

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        options = super().sqlalchemy_engine_options()
        # a single shared connection keeps the in-memory database alive across sessions
        options["poolclass"] = StaticPool
        return options
