"""
Authentication data models.

This module defines the identity-related data structures shared by the token
codec, the middleware and the account services.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from dataclasses import dataclass


Identity = uuid.UUID


def create_user_id() -> Identity:
    """Generate a new principal identifier."""
    return uuid.uuid4()


@dataclass(frozen=True)
class TokenClaims:
    """Validated claim set of a session token."""

    sub: Identity
    iat: int
    exp: int

    @property
    def issued_at(self) -> datetime:
        return datetime.fromtimestamp(self.iat, tz=timezone.utc)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JWT payload."""
        return {"sub": str(self.sub), "iat": self.iat, "exp": self.exp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenClaims":
        """
        Build claims from a decoded JWT payload.

        Raises:
            KeyError, TypeError, ValueError: If a claim is missing or malformed
        """
        iat, exp = data["iat"], data["exp"]
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise TypeError("iat and exp must be integer timestamps")
        return cls(sub=uuid.UUID(data["sub"]), iat=iat, exp=exp)


@dataclass
class UserRecord:
    """A row of the user table."""

    user_id: Identity
    username: str
    email: str
    bio: str
    image: Optional[str]
    password_hash: str

    @classmethod
    def from_row(cls, row) -> "UserRecord":
        return cls(
            user_id=uuid.UUID(row["user_id"]),
            username=row["username"],
            email=row["email"],
            bio=row["bio"],
            image=row["image"],
            password_hash=row["password_hash"]
        )
