"""
Test suite for authentication middleware functionality.

This module tests the required and optional auth variants and the FastAPI
dependencies built on them.
"""

import uuid
import pytest
from types import SimpleNamespace
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from conduit.auth.jwt_handler import JWTHandler, SCHEME_PREFIX
from conduit.auth.middleware import (
    AuthMiddleware, ExtractionResult, maybe_auth, require_auth, try_extract
)
from conduit.core.exceptions import UnauthorizedError


def _request(headers=None, auth_middleware=None):
    """Mock FastAPI request."""
    request = Mock()
    request.headers = headers or {}
    request.state = SimpleNamespace()
    request.url.path = "/api/user"
    request.app.state.auth_middleware = auth_middleware
    return request


@pytest.fixture
def identity():
    return uuid.uuid4()


@pytest.fixture
def auth_middleware(jwt_handler):
    return AuthMiddleware(jwt_handler)


@pytest.fixture
def invalid_headers(jwt_handler, signing_keys, identity):
    """The three ways a request can fail authentication."""
    raw = jwt_handler.issue(identity)[len(SCHEME_PREFIX):]
    expired = JWTHandler(
        signing_keys, clock=lambda: datetime.now(timezone.utc) - timedelta(days=30)
    ).issue(identity)
    return {
        "missing": {},
        "no_prefix": {"Authorization": raw},
        "expired": {"Authorization": expired},
    }


class TestTryExtract:
    """Test the shared extraction routine."""

    def test_valid(self, jwt_handler, identity):
        result = try_extract(jwt_handler.issue(identity), jwt_handler)

        assert result.authenticated
        assert result.identity == identity
        assert result.reason is None

    def test_missing_header(self, jwt_handler):
        result = try_extract(None, jwt_handler)

        assert not result.authenticated
        assert result.reason == "missing authorization header"

    def test_invalid_token_reason(self, jwt_handler):
        result = try_extract("Bearer nonsense", jwt_handler)

        assert result == ExtractionResult(identity=None, reason="jwt")


class TestRequireAuth:
    """Test the required variant."""

    def test_valid_token_sets_identity(self, auth_middleware, jwt_handler, identity):
        request = _request({"Authorization": jwt_handler.issue(identity)})

        assert auth_middleware.require_auth(request) == identity
        assert request.state.identity == identity

    @pytest.mark.parametrize("case", ["missing", "no_prefix", "expired"])
    def test_rejects(self, auth_middleware, invalid_headers, case):
        request = _request(invalid_headers[case])

        with pytest.raises(UnauthorizedError) as exc_info:
            auth_middleware.require_auth(request)

        assert exc_info.value.status_code == 401
        assert not hasattr(request.state, "identity")


class TestMaybeAuth:
    """Test the optional variant."""

    def test_valid_token_sets_identity(self, auth_middleware, jwt_handler, identity):
        request = _request({"Authorization": jwt_handler.issue(identity)})

        assert auth_middleware.maybe_auth(request) == identity
        assert request.state.identity == identity

    @pytest.mark.parametrize("case", ["missing", "no_prefix", "expired"])
    def test_continues_anonymously(self, auth_middleware, invalid_headers, case):
        request = _request(invalid_headers[case])

        assert auth_middleware.maybe_auth(request) is None
        assert request.state.identity is None


class TestDependencies:
    """Test the module-level FastAPI dependencies."""

    def test_require_auth_uses_app_middleware(self, auth_middleware, jwt_handler, identity):
        request = _request({"Authorization": jwt_handler.issue(identity)}, auth_middleware)

        assert require_auth(request) == identity

    def test_require_auth_rejects(self, auth_middleware):
        with pytest.raises(UnauthorizedError):
            require_auth(_request({}, auth_middleware))

    def test_maybe_auth_anonymous(self, auth_middleware):
        assert maybe_auth(_request({}, auth_middleware)) is None
