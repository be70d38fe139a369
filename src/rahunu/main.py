import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, status
from tortoise import Tortoise, connections
from tortoise.contrib.fastapi import tortoise_exception_handlers
from tortoise.exceptions import DBConnectionError, OperationalError

from .core import logging_config  # noqa: F401  configures the "rahunu" logger
from .core.config import APP_ENV, DATABASE_URL, validate_environment
from .features.audit.router import router as audit_router
from .features.auth.router import router as auth_router
from .features.entries.router import router as entries_router
from .features.reports.router import router as reports_router
from .features.settings.router import router as settings_router

logger = logging.getLogger("rahunu.main")

MODEL_MODULES = [
    "rahunu.features.auth.models",
    "rahunu.features.entries.models",
    "rahunu.features.audit.models",
    "rahunu.features.settings.models",
]

# Shared by the app, the CLI and aerich (see [tool.aerich] in pyproject.toml)
TORTOISE_ORM_CONFIG = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {
            "models": [*MODEL_MODULES, "aerich.models"],
            "default_connection": "default",
        }
    },
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Refuses to start on an unsafe production configuration, then owns the DB connections."""
    validate_environment()
    logger.info(f"Starting Rahunu registry ({APP_ENV})")
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)

    yield

    await Tortoise.close_connections()
    logger.info("Database connections closed")


app = FastAPI(
    title="Rahunu Registry API",
    description="Loan agreement registry with summary, detailed and branch reports.",
    version="0.1.0",
    exception_handlers=tortoise_exception_handlers(),
    lifespan=lifespan,
)


@app.get("/health", tags=["Health"])
async def health_check():
    try:
        await connections.get("default").execute_query("SELECT 1")
    except (DBConnectionError, OperationalError) as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ok"}


for router in (auth_router, entries_router, settings_router, audit_router, reports_router):
    app.include_router(router, prefix="/api/v1")
