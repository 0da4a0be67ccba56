"""
API Router initialization and registration.
"""

from .users import router as users_router
from .profiles import router as profiles_router
from .articles import router as articles_router
from .comments import router as comments_router

# Export all routers
__all__ = [
    "users_router",
    "profiles_router",
    "articles_router",
    "comments_router"
]
