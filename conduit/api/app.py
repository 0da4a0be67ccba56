"""
Main FastAPI application for the Conduit API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..auth.config import load_signing_keys, session_length
from ..auth.jwt_handler import JWTHandler
from ..auth.middleware import AuthMiddleware
from ..auth.ownership import OwnershipGuard
from ..auth.password import CredentialHasher
from ..core.config import AppConfig
from ..core.database import Database
from ..core.exceptions import ConduitError, UnauthorizedError, opaque_error_body
from ..services import ArticleService, CommentService, ProfileService, UserService
from .middleware import RequestLoggingMiddleware
from .routers import articles_router, comments_router, profiles_router, users_router
from .schemas import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the hashing workers on shutdown."""
    logger.info("[SERVER] Conduit API ready to accept requests")
    try:
        yield
    finally:
        logger.info("[SERVER] Shutting down Conduit API...")
        app.state.hasher.shutdown()


def create_app(config: AppConfig) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Everything the request path needs is built here, once, and attached to
    ``app.state``. Unreadable or mismatched signing keys abort startup.

    Args:
        config: Validated application configuration

    Returns:
        FastAPI: Configured FastAPI application instance

    Raises:
        ConfigurationError: If the signing keys cannot be loaded
    """
    app = FastAPI(
        title="Conduit API",
        description="RealWorld Conduit backend",
        version="1.0.0",
        lifespan=lifespan
    )

    _setup_services(app, config)
    app.add_middleware(RequestLoggingMiddleware, enable_detailed_logging=config.logging.request_logging)
    _setup_routers(app)
    _setup_exception_handlers(app)

    logger.info("[APP] FastAPI application created and configured")
    return app


def _setup_services(app: FastAPI, config: AppConfig):
    """Build the shared services and attach them to the app."""
    database = Database(config.database.path, timeout=config.database.timeout_seconds)
    database.init_schema()

    keys = load_signing_keys(config.auth)
    jwt_handler = JWTHandler(keys, session_length=session_length(config.auth))
    hasher = CredentialHasher(
        time_cost=config.password.time_cost,
        memory_cost=config.password.memory_cost,
        parallelism=config.password.parallelism,
        max_workers=config.password.max_workers
    )
    guard = OwnershipGuard(database)

    app.state.config = config
    app.state.database = database
    app.state.jwt_handler = jwt_handler
    app.state.hasher = hasher
    app.state.auth_middleware = AuthMiddleware(jwt_handler)
    app.state.user_service = UserService(database, hasher)
    app.state.profile_service = ProfileService(database)
    app.state.article_service = ArticleService(database, guard)
    app.state.comment_service = CommentService(database, guard)


def _setup_routers(app: FastAPI):
    """Setup application routers."""
    app.include_router(users_router)
    app.include_router(profiles_router)
    app.include_router(articles_router)
    app.include_router(comments_router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(status="healthy")


def _validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        # Drop the "body" and root-key prefix: ("body", "user", "email") -> "email"
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = location[-1] if location else "body"
        errors.setdefault(field, []).append(error.get("msg", "invalid"))
    return errors


def _setup_exception_handlers(app: FastAPI):
    """Map the error taxonomy onto HTTP responses."""

    @app.exception_handler(ConduitError)
    async def conduit_exception_handler(request: Request, exc: ConduitError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
        body = opaque_error_body() if exc.status_code >= 500 else exc.to_dict()
        return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"errors": _validation_errors(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content=opaque_error_body())
