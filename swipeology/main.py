from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from swipeology.config import settings
from swipeology.api.v1.router import api_router
from swipeology.core.exceptions import (
    BlockedProfileError,
    MatchNotFoundError,
    NotAParticipantError,
    ProfileConflictError,
    ProfileNotFoundError,
    RemoteServiceError,
    ValidationError,
)
from swipeology.core.firebase import init_firebase, firebase_service
from swipeology.core.middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from swipeology.db.session import init_db, close_db, async_session_maker
from swipeology.db.redis import init_redis, close_redis, get_redis
import swipeology.models  # Register models for create_all


def setup_logging(log_level: str) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    await init_redis()
    init_firebase()
    logger.info("%s started in %s mode", settings.APP_NAME, settings.ENVIRONMENT)

    yield

    # Shutdown
    await close_db()
    await close_redis()
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Friends and dating matching for campus communities",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Security headers middleware (outermost, assigns the request id)
app.add_middleware(SecurityHeadersMiddleware)


# ==================== Error handlers ====================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    if isinstance(exc, NotAParticipantError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, BlockedProfileError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ProfileConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@app.exception_handler(MatchNotFoundError)
async def match_not_found_handler(request: Request, exc: MatchNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Match not found."})


@app.exception_handler(ProfileNotFoundError)
async def profile_not_found_handler(request: Request, exc: ProfileNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Profile not found."})


@app.exception_handler(RemoteServiceError)
async def remote_service_error_handler(request: Request, exc: RemoteServiceError):
    logger.warning("Data service error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Data service unavailable. Please try again."},
    )


# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


async def _check_database() -> dict:
    start = time.perf_counter()
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "error": str(e)[:100]}
    return {"status": "healthy", "latency_ms": _elapsed_ms(start)}


def _check_redis() -> dict:
    redis = get_redis()
    if redis is None:
        return {"status": "not_configured"}
    start = time.perf_counter()
    try:
        redis.ping()
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)[:100]}
    return {"status": "healthy", "latency_ms": _elapsed_ms(start)}


@app.get("/health")
async def health_check():
    """
    Connectivity of the database and Redis, plus whether the Firebase
    chat mirror is active. Any unhealthy dependency marks the API degraded.
    """
    services = {
        "database": await _check_database(),
        "redis": _check_redis(),
        "firebase": {"status": "initialized" if firebase_service.enabled else "not_configured"},
    }
    degraded = any(service["status"] == "unhealthy" for service in services.values())
    return {"status": "degraded" if degraded else "healthy", "services": services}
