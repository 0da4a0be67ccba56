"""
Authentication middleware and dependencies.

Both variants share one extraction routine and differ only in what they do
when it fails: ``require_auth`` rejects the request before the handler runs,
``maybe_auth`` lets it through anonymously. Either way the outcome is
published on ``request.state.identity``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .jwt_handler import JWTHandler
from .models import Identity
from ..core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of reading a bearer token from a request."""

    identity: Optional[Identity] = None
    reason: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.identity is not None


def try_extract(authorization: Optional[str], jwt_handler: JWTHandler) -> ExtractionResult:
    """
    Read and validate an Authorization header value.

    Never raises for caller input; failures come back as a result with a
    reason meant for the logs.
    """
    if not authorization:
        return ExtractionResult(reason="missing authorization header")

    try:
        return ExtractionResult(identity=jwt_handler.decode(authorization))
    except UnauthorizedError as e:
        return ExtractionResult(reason=e.context.get("reason", "invalid token"))


class AuthMiddleware:
    """Authentication middleware for FastAPI."""

    def __init__(self, jwt_handler: JWTHandler):
        """
        Initialize auth middleware.

        Args:
            jwt_handler: JWT handler instance
        """
        self.jwt_handler = jwt_handler
        self.logger = logging.getLogger(f"{__name__}.AuthMiddleware")

    def extract(self, request: Request) -> ExtractionResult:
        return try_extract(request.headers.get(AUTHORIZATION_HEADER), self.jwt_handler)

    def require_auth(self, request: Request) -> Identity:
        """
        Authenticate a request or reject it.

        Raises:
            UnauthorizedError: If the header is absent, lacks the scheme, or
                carries an invalid or expired token
        """
        result = self.extract(request)
        if not result.authenticated:
            self.logger.debug(f"Rejected request to {request.url.path}: {result.reason}")
            raise UnauthorizedError()

        request.state.identity = result.identity
        return result.identity

    def maybe_auth(self, request: Request) -> Optional[Identity]:
        """Authenticate a request if possible; otherwise continue anonymously."""
        result = self.extract(request)
        if not result.authenticated and result.reason != "missing authorization header":
            self.logger.debug(f"Ignoring bad token on {request.url.path}: {result.reason}")

        request.state.identity = result.identity
        return result.identity


def get_auth_middleware(request: Request) -> AuthMiddleware:
    """Get the middleware instance created at startup."""
    return request.app.state.auth_middleware


# FastAPI dependencies
def require_auth(request: Request) -> Identity:
    """Dependency for routes that need an authenticated caller."""
    return get_auth_middleware(request).require_auth(request)


def maybe_auth(request: Request) -> Optional[Identity]:
    """Dependency for routes that personalise output when a caller is known."""
    return get_auth_middleware(request).maybe_auth(request)
