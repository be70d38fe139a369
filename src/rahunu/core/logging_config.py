"""Logging for the "rahunu" namespace.

Importing this module configures it once. Environment variables:

- LOG_LEVEL: level of the "rahunu" logger (default INFO).
- LOG_NAMESPACES: comma separated logger prefixes to print, e.g.
  "rahunu.features.reports,rahunu.main". Empty prints everything.
- LOG_SQL: when truthy, Tortoise's SQL statements are logged at DEBUG.

Modules use logging.getLogger(__name__), so "rahunu.features.reports.service"
inherits from "rahunu.features.reports" and then from "rahunu".
"""
import logging
import os
import sys
from typing import Iterable, Optional


class NamespaceFilter(logging.Filter):
    """Passes records whose logger name starts with one of the given prefixes."""

    def __init__(self, allowed_namespaces: Optional[Iterable[str]] = None):
        super().__init__()
        self.allowed_namespaces = tuple(allowed_namespaces or ())

    def filter(self, record):
        return not self.allowed_namespaces or record.name.startswith(self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger("rahunu")


def _split_namespaces(value: str) -> list[str]:
    return [ns.strip() for ns in value.split(",") if ns.strip()]


def configure_logging() -> None:
    app_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    if not any(isinstance(h, logging.StreamHandler) for h in app_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(log_formatter)
        console_handler.addFilter(NamespaceFilter(_split_namespaces(os.getenv("LOG_NAMESPACES", ""))))
        app_logger.addHandler(console_handler)

    # Debug output from report generation
    logging.getLogger("rahunu.features.reports").setLevel(logging.DEBUG)

    if os.getenv("LOG_SQL", "").lower() in ("1", "true", "yes"):
        sql_logger = logging.getLogger("tortoise.db_client")
        sql_logger.setLevel(logging.DEBUG)
        sql_logger.addHandler(app_logger.handlers[0])


configure_logging()
