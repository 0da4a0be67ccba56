"""
Account API endpoints: registration, login and the current user.

These handlers are async. Password hashing runs on the credential hasher's
own executor and store calls on the worker thread pool.
"""

import logging
from fastapi import APIRouter, Depends

from ..dependencies import get_jwt_handler, get_user_service
from ..schemas import (
    LoginUserRequest, NewUserRequest, UpdateUserRequest,
    User, UserResponse
)
from ...auth.jwt_handler import JWTHandler
from ...auth.middleware import require_auth
from ...auth.models import Identity, UserRecord
from ...services import UserService

router = APIRouter(prefix="/api", tags=["users"])
logger = logging.getLogger(__name__)


def user_response(user: UserRecord, jwt_handler: JWTHandler) -> UserResponse:
    """Render an account with a freshly issued session token."""
    return UserResponse(
        user=User(
            email=user.email,
            token=jwt_handler.issue(user.user_id),
            username=user.username,
            bio=user.bio,
            image=user.image
        )
    )


@router.post("/users", response_model=UserResponse)
async def register(request: NewUserRequest,
                   users: UserService = Depends(get_user_service),
                   jwt_handler: JWTHandler = Depends(get_jwt_handler)) -> UserResponse:
    """Register a new account and log it in."""
    user = await users.register(request.user.username, request.user.email, request.user.password)
    return user_response(user, jwt_handler)


@router.post("/users/login", response_model=UserResponse)
async def login(request: LoginUserRequest,
                users: UserService = Depends(get_user_service),
                jwt_handler: JWTHandler = Depends(get_jwt_handler)) -> UserResponse:
    """Exchange email and password for a session token."""
    user = await users.login(request.user.email, request.user.password)
    return user_response(user, jwt_handler)


@router.get("/user", response_model=UserResponse)
async def get_current_user(identity: Identity = Depends(require_auth),
                           users: UserService = Depends(get_user_service),
                           jwt_handler: JWTHandler = Depends(get_jwt_handler)) -> UserResponse:
    """Get the authenticated account."""
    user = await users.current(identity)
    return user_response(user, jwt_handler)


@router.put("/user", response_model=UserResponse)
async def update_current_user(request: UpdateUserRequest,
                              identity: Identity = Depends(require_auth),
                              users: UserService = Depends(get_user_service),
                              jwt_handler: JWTHandler = Depends(get_jwt_handler)) -> UserResponse:
    """Update the authenticated account."""
    user = await users.update(identity, request.user.model_dump())
    return user_response(user, jwt_handler)
