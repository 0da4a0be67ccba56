"""
HTTP layer of the Conduit API.
"""

from .app import create_app

__all__ = ["create_app"]
