"""
Cinema Booking API - Main Application Entry Point

A film ticketing backend demonstrating:
- Concurrency-safe seat reservation through one conditional write per screening
- Interchangeable relational (PostgreSQL) and document (MongoDB) stores
- Redis caching of schedule listings with per-film invalidation
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinema_booking.api.middleware import RequestLoggingMiddleware
from cinema_booking.api.router import api_router
from cinema_booking.core.config import get_settings
from cinema_booking.core.logging import get_logger, setup_logging
from cinema_booking.core.metrics import metrics_endpoint
from cinema_booking.services.cache_service import close_redis, get_cache_stats, get_redis
from cinema_booking.services.store_factory import build_screening_store

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        storage=settings.STORAGE_BACKEND,
    )

    store = build_screening_store(settings)
    await store.ensure_schema()
    app.state.screening_store = store

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Serving schedules without cache")

    yield

    await store.close()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Film screening ticketing API with concurrency-safe seat reservation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "storage": settings.STORAGE_BACKEND,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
