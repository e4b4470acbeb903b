from contextlib import asynccontextmanager
from fastapi import FastAPI

from core.di_container import DependencyContainer
from core.environment import settings
from core.logger import app_logger, configure_uvicorn_logger


@asynccontextmanager
async def lifespan_manager(app: FastAPI):
    """Context manager that runs tasks at app start and shutdown."""

    # Run at start
    configure_uvicorn_logger()
    container = DependencyContainer()
    await container.init_resources()
    app.state.container = container

    app_logger.info(
        f"Tabulary started ({settings.ENVIRONMENT}, {settings.DB_DRIVER} store, "
        f"schema creation {'on' if settings.DB_CREATE_SCHEMA else 'off'})"
    )

    # Yield to app
    yield

    # Run at shutdown
    try:
        await container.shutdown_resources()
    except Exception as exc:
        app_logger.error("Failed to shut down resources", exc_info=exc)
