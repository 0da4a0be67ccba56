"""
Authentication and authorization module.

This module provides RS256 session tokens, Argon2id credential hashing,
required/optional request authentication and owner-restricted mutations.
"""

from .config import SigningKeys, load_signing_keys, DEFAULT_SESSION_LENGTH
from .jwt_handler import JWTHandler, SCHEME_PREFIX
from .password import CredentialHasher
from .models import Identity, TokenClaims, UserRecord, create_user_id
from .middleware import AuthMiddleware, ExtractionResult, try_extract, require_auth, maybe_auth
from .ownership import OwnershipGuard, OwnershipOutcome, OwnershipResult, Statement, classify

__all__ = [
    "SigningKeys",
    "load_signing_keys",
    "DEFAULT_SESSION_LENGTH",
    "JWTHandler",
    "SCHEME_PREFIX",
    "CredentialHasher",
    "Identity",
    "TokenClaims",
    "UserRecord",
    "create_user_id",
    "AuthMiddleware",
    "ExtractionResult",
    "try_extract",
    "require_auth",
    "maybe_auth",
    "OwnershipGuard",
    "OwnershipOutcome",
    "OwnershipResult",
    "Statement",
    "classify",
]
