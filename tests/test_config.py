"""Tests for application settings."""

import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from pennywise.config import Settings, configure_logging


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("PENNYWISE_DATABASE_URL", "PENNYWISE_DB_PATH", "PENNYWISE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_explicit_url_wins(tmp_path):
    settings = Settings(
        _env_file=None, database_url="postgresql://db/pennywise", db_path=str(tmp_path / "x.db")
    )
    assert settings.resolved_database_url() == "postgresql://db/pennywise"


def test_db_path_builds_sqlite_url(tmp_path):
    path = tmp_path / "ledger.db"
    settings = Settings(_env_file=None, db_path=str(path))
    assert settings.resolved_database_url() == f"sqlite:///{path}"


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("PENNYWISE_ALERT_MAX_PER_DAY", "3")
    monkeypatch.setenv("PENNYWISE_DEFAULT_BUDGET_SHARE", "25")

    settings = Settings(_env_file=None)

    assert settings.alert_max_per_day == 3
    assert settings.default_budget_share == Decimal("25")


def test_detection_config():
    config = Settings(_env_file=None, detection_min_occurrences=4).detection_config()

    assert config.min_occurrences == 4
    assert config.confidence_threshold == 0.7


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, detection_confidence_threshold=2)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_budget_share=0)


def test_configure_logging_sets_level():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
