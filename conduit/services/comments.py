"""
Comment service.
"""

import logging
from typing import Any, Dict, List, Optional

from ..auth.models import Identity
from ..auth.ownership import OwnershipGuard, Statement
from ..core.database import Database, utc_timestamp
from ..core.exceptions import NotFoundError
from .profiles import author_from_row

logger = logging.getLogger(__name__)

COMMENT_SELECT = '''
    select
        comment.comment_id,
        comment.created_at,
        comment.updated_at,
        comment.body,
        author.username author_username,
        author.bio author_bio,
        author.image author_image,
        exists(
            select 1 from follow
            where followed_user_id = author.user_id and following_user_id = :viewer
        ) following_author
    from article_comment comment
    inner join "user" author on author.user_id = comment.user_id
'''


def comment_from_row(row) -> Dict[str, Any]:
    return {
        "id": row["comment_id"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
        "body": row["body"],
        "author": author_from_row(row),
    }


class CommentService:
    """Service for article comments."""

    def __init__(self, database: Database, guard: OwnershipGuard):
        self.database = database
        self.guard = guard

    def list_comments(self, slug: str, viewer: Optional[Identity]) -> List[Dict[str, Any]]:
        """
        Comments on an article, oldest first.

        Raises:
            NotFoundError: If no article has this slug
        """
        article = self.database.fetch_one("select article_id from article where slug = ?", (slug,))
        if article is None:
            raise NotFoundError("Article not found")

        rows = self.database.fetch_all(
            f"{COMMENT_SELECT} where comment.article_id = :article_id order by comment.created_at",
            {"article_id": article["article_id"], "viewer": str(viewer) if viewer else None}
        )
        return [comment_from_row(row) for row in rows]

    def add(self, slug: str, author: Identity, body: str) -> Dict[str, Any]:
        """
        Comment on an article.

        Raises:
            NotFoundError: If no article has this slug
        """
        now = utc_timestamp()
        with self.database.transaction() as conn:
            cursor = conn.execute(
                '''
                insert into article_comment (article_id, user_id, body, created_at, updated_at)
                select article_id, ?, ?, ?, ?
                from article
                where slug = ?
                ''',
                (str(author), body, now, now, slug)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Article not found")
            row = conn.execute(
                f"{COMMENT_SELECT} where comment.comment_id = :comment_id",
                {"comment_id": cursor.lastrowid, "viewer": str(author)}
            ).fetchone()

        logger.debug(f"Comment {row['comment_id']} added to {slug}")
        return comment_from_row(row)

    def delete(self, slug: str, comment_id: int, caller: Identity) -> None:
        """
        Delete a comment the caller wrote.

        Raises:
            NotFoundError: If the comment does not exist on this article
            ForbiddenError: If the caller did not write it
        """
        result = self.guard.execute(
            probe=Statement(
                '''
                select exists(
                    select 1 from article_comment comment
                    inner join article on article.article_id = comment.article_id
                    where comment.comment_id = ? and article.slug = ?
                )
                ''',
                (comment_id, slug)
            ),
            mutation=Statement(
                '''
                delete from article_comment
                where comment_id = ?
                and article_id = (select article_id from article where slug = ?)
                and user_id = ?
                ''',
                (comment_id, slug, str(caller))
            )
        )
        result.raise_for_outcome()
        logger.debug(f"Comment {comment_id} deleted from {slug}")
