"""
Marketplace Applications API

ASGI entry point: ``uvicorn src.main:app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.config import get_settings
from src.core.database import close_db, init_db
from src.routers import health_router, marketplace_applications_router
from src.routers.marketplace_applications import get_plugin_registrar

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# One line per outbound request is too chatty at INFO
for noisy in ("httpx", "httpcore"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

SERVICE_NAME = "Marketplace Applications API"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    await init_db()

    registrar = get_plugin_registrar()
    if not registrar.enabled:
        logger.info("MARKETPLACE_PLUGINS_API_URL not set, repository registration disabled")
    logger.info(f"{SERVICE_NAME} ready ({settings.environment})")

    yield

    # Pending registrations use the event loop that is about to close
    await registrar.drain()
    await close_db()
    logger.info(f"{SERVICE_NAME} stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=SERVICE_NAME,
        description="Marketplace application records: creation, publication and legacy migration",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(marketplace_applications_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": SERVICE_NAME, "version": SERVICE_VERSION, "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("src.main:app", host=settings.host, port=settings.port, reload=settings.is_development)
