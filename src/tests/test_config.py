import pytest

from rahunu.core import config
from rahunu.core.config import EnvironmentValidationError, collect_environment_errors

STRONG_SECRET = "s" * 40
POSTGRES_URL = "postgres://rahunu:secret@db:5432/rahunu"


def test_non_production_environments_are_not_checked():
    assert collect_environment_errors("development", "", "") == []
    assert collect_environment_errors("test", "changeme", "sqlite://:memory:") == []


def test_valid_production_settings():
    assert collect_environment_errors("production", STRONG_SECRET, POSTGRES_URL) == []


@pytest.mark.parametrize(
    "secret_key, expected",
    [
        ("", "SECRET_KEY is required"),
        ("changeme", "SECRET_KEY must not use a default value"),
        ("short-secret", "SECRET_KEY must be at least 32 characters long"),
    ],
)
def test_production_secret_key_checks(secret_key, expected):
    assert collect_environment_errors("production", secret_key, POSTGRES_URL) == [expected]


def test_production_requires_postgres():
    errors = collect_environment_errors("production", STRONG_SECRET, "sqlite://./rahunu.sqlite3")
    assert errors == ["DATABASE_URL must be a PostgreSQL connection string in production"]


def test_validate_environment_raises_with_all_errors(monkeypatch):
    monkeypatch.setattr(
        config, "collect_environment_errors",
        lambda: collect_environment_errors("production", "changeme", "sqlite://x"),
    )
    with pytest.raises(EnvironmentValidationError) as exc_info:
        config.validate_environment()
    message = str(exc_info.value)
    assert "SECRET_KEY must not use a default value" in message
    assert "DATABASE_URL must be a PostgreSQL" in message
