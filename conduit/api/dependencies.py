"""
Dependency providers for the Conduit API.

Every shared service is created once by ``create_app`` and stored on
``app.state``; these providers hand them to route handlers.
"""

from fastapi import Request

from ..auth.jwt_handler import JWTHandler
from ..services import ArticleService, CommentService, ProfileService, UserService


def get_jwt_handler(request: Request) -> JWTHandler:
    return request.app.state.jwt_handler


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service


def get_article_service(request: Request) -> ArticleService:
    return request.app.state.article_service


def get_comment_service(request: Request) -> CommentService:
    return request.app.state.comment_service
