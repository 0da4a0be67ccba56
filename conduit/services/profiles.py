"""
Profile service: public profiles and the follow graph.
"""

import sqlite3
import logging
from typing import Any, Dict, Optional

from ..auth.models import Identity
from ..core.database import Database, constraint_name, utc_timestamp
from ..core.exceptions import ForbiddenError, InternalError, NotFoundError

logger = logging.getLogger(__name__)


def _viewer_param(viewer: Optional[Identity]) -> Optional[str]:
    return str(viewer) if viewer is not None else None


def profile_from_row(row) -> Dict[str, Any]:
    return {
        "username": row["username"],
        "bio": row["bio"],
        "image": row["image"],
        "following": bool(row["following"]),
    }


def author_from_row(row) -> Dict[str, Any]:
    """Build the author profile of an article or comment row."""
    return {
        "username": row["author_username"],
        "bio": row["author_bio"],
        "image": row["author_image"],
        "following": bool(row["following_author"]),
    }


class ProfileService:
    """Service for profiles and following."""

    def __init__(self, database: Database):
        self.database = database

    def get_profile(self, username: str, viewer: Optional[Identity]) -> Dict[str, Any]:
        """
        Look up a profile as seen by ``viewer``.

        Raises:
            NotFoundError: If no user has this username
        """
        row = self.database.fetch_one(
            '''
            select
                username,
                bio,
                image,
                exists(
                    select 1 from follow
                    where followed_user_id = "user".user_id and following_user_id = ?
                ) following
            from "user"
            where username = ?
            ''',
            (_viewer_param(viewer), username)
        )
        if row is None:
            raise NotFoundError("Profile not found")
        return profile_from_row(row)

    def _set_following(self, username: str, follower: Identity, following: bool) -> Dict[str, Any]:
        with self.database.transaction() as conn:
            row = conn.execute(
                'select user_id, username, bio, image from "user" where username = ?',
                (username,)
            ).fetchone()
            if row is None:
                raise NotFoundError("Profile not found")

            if following:
                conn.execute(
                    '''
                    insert into follow (following_user_id, followed_user_id, created_at)
                    values (?, ?, ?)
                    on conflict (following_user_id, followed_user_id) do nothing
                    ''',
                    (str(follower), row["user_id"], utc_timestamp())
                )
            else:
                conn.execute(
                    'delete from follow where following_user_id = ? and followed_user_id = ?',
                    (str(follower), row["user_id"])
                )

        return {
            "username": row["username"],
            "bio": row["bio"],
            "image": row["image"],
            "following": following,
        }

    def follow(self, username: str, follower: Identity) -> Dict[str, Any]:
        """
        Follow a user. Following someone twice is a no-op.

        Raises:
            NotFoundError: If no user has this username
            ForbiddenError: If a user tries to follow themselves
        """
        try:
            profile = self._set_following(username, follower, True)
        except sqlite3.IntegrityError as e:
            if constraint_name(e) == "user_cannot_follow_self":
                raise ForbiddenError("You cannot follow yourself") from e
            raise InternalError("Unexpected constraint violation on follow", cause=e) from e

        logger.debug(f"{follower} followed {username}")
        return profile

    def unfollow(self, username: str, follower: Identity) -> Dict[str, Any]:
        """
        Unfollow a user. Unfollowing someone not followed is a no-op.

        Raises:
            NotFoundError: If no user has this username
        """
        profile = self._set_following(username, follower, False)
        logger.debug(f"{follower} unfollowed {username}")
        return profile
