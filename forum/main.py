"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from forum import database
from forum.api.auth import router as auth_router
from forum.api.categories import router as categories_router
from forum.api.middleware import CorrelationIdMiddleware
from forum.api.routes import router
from forum.api.users import router as users_router
from forum.config import get_settings
from forum.exceptions import ForumError
from forum.services.logging_service import configure_logging, get_logger

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    startup_logger = get_logger("main")

    if settings.uses_default_jwt_secret:
        startup_logger.warning(
            "insecure_jwt_secret",
            note="JWT_SECRET is not set; tokens are signed with a public default",
        )

    await database.init_database()
    try:
        await database.ensure_indexes()
    except PyMongoError as e:
        startup_logger.warning(
            "database_index_setup_failed",
            error=str(e),
            note="Continuing; uniqueness is still checked before writes",
        )

    startup_logger.info(
        "application_started",
        database=settings.mongo_db,
        ttl_hours=settings.token_ttl_hours,
        log_level=settings.log_level,
    )

    yield

    await database.close_database()
    startup_logger.info("application_shutdown")


app = FastAPI(
    title="Forum API",
    description="Accounts, authentication and categories for the discussion forum",
    version="1.0.0",
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


@app.exception_handler(ForumError)
async def forum_error_handler(request: Request, exc: ForumError) -> JSONResponse:
    """Render domain and auth errors as {"message": ...}."""
    correlation_id = _correlation_id(request)

    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            correlation_id=correlation_id,
            error=type(exc).__name__,
            path=request.url.path,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers={"X-Correlation-Id": correlation_id},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Keep framework errors (404 route, 405 method) in the same envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with a 400 and per-field messages."""
    correlation_id = _correlation_id(request)

    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", ["unknown"]) if loc != "body"),
            "message": error.get("msg", "Validation failed"),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        correlation_id=correlation_id,
        fields=[e["field"] for e in errors],
    )

    return JSONResponse(
        status_code=400,
        content={"message": "Validation error", "errors": errors},
        headers={"X-Correlation-Id": correlation_id},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=get_settings().cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(categories_router)
app.include_router(router)
