# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies.services import get_event_publisher_singleton
from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .database import init_db
from .errors import register_error_handlers
from .routes import prometheus
from .routes.v1 import (
    admin_bookings as admin_bookings_v1,
    bookings as bookings_v1,
    health as health_v1,
    trainers as trainers_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")

    # Production schemas are managed outside the app; local runs get tables on demand
    if settings.environment in ("development", "test"):
        init_db()

    publisher = get_event_publisher_singleton()
    try:
        yield
    finally:
        logger.info(f"{BRAND_NAME} API shutting down...")
        publisher.shutdown(wait=True)


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info(f"CORS allow_origins={settings.cors_allowed_origins}")

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(trainers_v1.router, prefix="/trainers")
api_v1.include_router(admin_bookings_v1.router, prefix="/admin")
api_v1.include_router(health_v1.router, prefix="/health")

app.include_router(api_v1)
# Load balancers poll the unversioned path
app.include_router(health_v1.router, prefix="/health", include_in_schema=False)

# Standard /metrics/prometheus path for Prometheus scraping
app.include_router(prometheus.router)
