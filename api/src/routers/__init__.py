# FastAPI Routers
from src.routers.health import router as health_router
from src.routers.marketplace_applications import router as marketplace_applications_router

__all__ = [
    "health_router",
    "marketplace_applications_router",
]
