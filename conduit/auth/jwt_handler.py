"""
JWT Token Handler for authentication.

This module issues and validates the stateless session tokens used by the
API. Tokens are RS256-signed, carry only the subject and its issue/expiry
times, and are never stored server-side.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from .config import DEFAULT_SESSION_LENGTH, TOKEN_ALGORITHM, SigningKeys
from .models import Identity, TokenClaims
from ..core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

SCHEME_PREFIX = "Bearer "


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JWTHandler:
    """Issues and decodes signed identity tokens."""

    def __init__(self, keys: SigningKeys,
                 session_length: timedelta = DEFAULT_SESSION_LENGTH,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize JWT handler.

        Args:
            keys: RSA key pair loaded at startup
            session_length: Lifetime of an issued token
            clock: Source of the current UTC time
        """
        self.keys = keys
        self.session_length = session_length
        self.algorithm = TOKEN_ALGORITHM
        self._clock = clock or _utc_now

        logger.info(f"JWT Handler initialized with algorithm: {self.algorithm}")

    def issue(self, identity: Identity) -> str:
        """
        Issue a session token for a principal.

        Args:
            identity: Subject of the token

        Returns:
            ``"Bearer <jwt>"``, ready to be used as an Authorization header
        """
        iat = int(self._clock().timestamp())
        exp = iat + int(self.session_length.total_seconds())
        claims = TokenClaims(sub=identity, iat=iat, exp=exp)

        encoded_jwt = jwt.encode(claims.to_dict(), self.keys.private_key, algorithm=self.algorithm)

        logger.debug(f"Issued token for subject: {identity}")
        return f"{SCHEME_PREFIX}{encoded_jwt}"

    def decode_claims(self, token: str) -> TokenClaims:
        """
        Validate a presented token and return its claims.

        Args:
            token: Token string including the ``Bearer `` scheme prefix

        Returns:
            Validated claims

        Raises:
            UnauthorizedError: For every kind of failure, without saying which
        """
        if not token or not token.startswith(SCHEME_PREFIX):
            raise UnauthorizedError("Invalid authentication token", context={"reason": "missing scheme"})

        encoded_jwt = token[len(SCHEME_PREFIX):]

        try:
            payload = jwt.decode(
                encoded_jwt,
                self.keys.public_key,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True, "require_sub": True}
            )
            claims = TokenClaims.from_dict(payload)
        except JWTError as e:
            logger.debug(f"JWT verification failed: {e}")
            raise UnauthorizedError("Invalid authentication token", context={"reason": "jwt"})
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"JWT payload rejected: {e}")
            raise UnauthorizedError("Invalid authentication token", context={"reason": "payload"})

        if int(self._clock().timestamp()) >= claims.exp:
            raise UnauthorizedError("Invalid authentication token", context={"reason": "expired"})

        return claims

    def decode(self, token: str) -> Identity:
        """
        Validate a presented token and return its subject.

        Raises:
            UnauthorizedError: If the token is not acceptable
        """
        return self.decode_claims(token).sub
