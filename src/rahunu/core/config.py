import os
from typing import List

# In a real deployment, load from environment variables or a config file
APP_ENV: str = os.getenv("APP_ENV", "development")
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./rahunu.sqlite3")

SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Reporting
REPORT_FILENAME_PREFIX: str = os.getenv("REPORT_FILENAME_PREFIX", "rahunu")
REPORT_CURRENCY: str = os.getenv("REPORT_CURRENCY", "MVR")

DEFAULT_SECRET_KEYS = ("your-secret-key-for-jwt-!ChangeMe!", "changeme", "changeme_dev")
MIN_SECRET_KEY_LENGTH = 32


class EnvironmentValidationError(Exception):
    """Raised at startup when the production environment is misconfigured."""


def collect_environment_errors(
    app_env: str = APP_ENV,
    secret_key: str = SECRET_KEY,
    database_url: str = DATABASE_URL,
) -> List[str]:
    errors: List[str] = []
    if app_env != "production":
        return errors

    if not secret_key:
        errors.append("SECRET_KEY is required")
    elif secret_key in DEFAULT_SECRET_KEYS:
        errors.append("SECRET_KEY must not use a default value")
    elif len(secret_key) < MIN_SECRET_KEY_LENGTH:
        errors.append(f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters long")

    if not database_url:
        errors.append("DATABASE_URL is required")
    elif not database_url.startswith(("postgres://", "postgresql://")):
        errors.append("DATABASE_URL must be a PostgreSQL connection string in production")

    return errors


def validate_environment() -> None:
    """Fails fast when required production settings are missing or unsafe.

    Development and test environments are not checked, so the defaults above
    keep working locally.
    """
    errors = collect_environment_errors()
    if errors:
        raise EnvironmentValidationError(
            f"Environment validation failed: {', '.join(errors)}"
        )
