"""
Eventdesk Registration API - Main Application Entry Point

Event registration and on-site check-in:
- Tiered seat allocation with an optional atomic Redis admission gate
- Exactly-once check-in through a single conditional write
- Live dashboard feed over Server-Sent Events
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError

from eventdesk.core.background import drain
from eventdesk.core.config import get_settings
from eventdesk.core.exceptions import DomainError, StoreUnavailable
from eventdesk.core.logging import setup_logging, get_logger
from eventdesk.core.metrics import metrics_endpoint
from eventdesk.api.router import api_router
from eventdesk.api.middleware import RequestLoggingMiddleware
from eventdesk.infrastructure.redis_client import get_redis, close_redis, redis_status
from eventdesk.db.session import AsyncSessionLocal
from eventdesk.repositories.sqlalchemy_store import SqlAlchemyUnitOfWork
from eventdesk.services.auth_service import ensure_admin

settings = get_settings()
logger = get_logger(__name__)

RETRY_AFTER_SECONDS = "5"


async def bootstrap_admin() -> None:
    """Create the configured admin account on first start."""
    if not (settings.ADMIN_USERNAME and settings.ADMIN_PASSWORD):
        return
    try:
        async with AsyncSessionLocal() as session:
            await ensure_admin(SqlAlchemyUnitOfWork(session), settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)
    except (StoreUnavailable, DBAPIError, OSError) as e:
        logger.error("admin_bootstrap_failed", username=settings.ADMIN_USERNAME, error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        admission_strategy=settings.ADMISSION_STRATEGY,
    )

    await bootstrap_admin()

    # Redis only backs the admission gate
    if settings.ADMISSION_STRATEGY == "redis":
        redis_client = await get_redis()
        if redis_client:
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Admission gate failing open")

    yield

    # Cleanup
    await drain()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event registration and check-in API with exactly-once check-in",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS: strict allow-list
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    headers = None
    if isinstance(exc, StoreUnavailable):
        headers = {"Retry-After": RETRY_AFTER_SECONDS}
    if exc.status_code >= 500:
        logger.error("domain_error", code=exc.code.value, error=exc.message)
    else:
        logger.info("domain_error", code=exc.code.value, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def store_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Driver errors that escaped a repository: the store is unreachable."""
    logger.error("store_unavailable", error=str(exc))
    error = StoreUnavailable()
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error.to_dict(),
        headers={"Retry-After": RETRY_AFTER_SECONDS},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "admission_strategy": settings.ADMISSION_STRATEGY,
        "redis": await redis_status(),
    }


@app.get("/metrics", tags=["Health"])
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
