"""
Services package initialization.
"""

from .users import UserService
from .profiles import ProfileService
from .articles import ArticleService
from .comments import CommentService

__all__ = [
    "UserService",
    "ProfileService",
    "ArticleService",
    "CommentService"
]
