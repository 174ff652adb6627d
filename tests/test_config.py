"""Tests for environment-driven configuration."""

from __future__ import annotations

import calendar

import pytest

from studentfinance.config import BaseConfig, TestConfig, parse_weekday


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, calendar.MONDAY),
        ("", calendar.MONDAY),
        ("Sunday", calendar.SUNDAY),
        (" saturday ", calendar.SATURDAY),
        ("3", calendar.THURSDAY),
    ],
)
def test_parse_weekday(raw, expected):
    assert parse_weekday(raw) == expected


@pytest.mark.parametrize("raw", ["funday", "7", "-1"])
def test_parse_weekday_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_weekday(raw)


def test_base_config_reads_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("STUDENTFINANCE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STUDENTFINANCE_DEV_MODE", "false")
    monkeypatch.setenv("STUDENTFINANCE_WEEK_START", "sunday")
    monkeypatch.setenv("STUDENTFINANCE_CURRENCY_SYMBOL", "€")
    monkeypatch.delenv("STUDENTFINANCE_DATABASE_URL", raising=False)

    config = BaseConfig()

    assert config.DATA_DIR == (tmp_path / "data").resolve()
    assert config.DATA_DIR.is_dir()
    assert config.DEV_MODE is False
    assert config.WEEK_START == calendar.SUNDAY
    assert config.CURRENCY_SYMBOL == "€"
    assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'studentfinance.db'}"
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_database_url_override(tmp_path, monkeypatch):
    monkeypatch.setenv("STUDENTFINANCE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STUDENTFINANCE_DATABASE_URL", "postgresql://ledger@localhost/ledger")

    config = BaseConfig()

    assert config.DATABASE_URL == "postgresql://ledger@localhost/ledger"
    assert config.sqlalchemy_engine_options() == {"connect_args": {}}


def test_test_config_uses_shared_memory_database(tmp_path, monkeypatch):
    from sqlalchemy.pool import StaticPool

    monkeypatch.setenv("STUDENTFINANCE_DATA_DIR", str(tmp_path))

    config = TestConfig()

    assert config.DATABASE_URL == "sqlite://"
    assert config.TESTING is True
    assert config.sqlalchemy_engine_options()["poolclass"] is StaticPool
