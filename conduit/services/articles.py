"""
Article service: publishing, listing, favorites and tags.

Updates and deletes go through the ownership guard so authorization and
mutation happen in one atomic step.
"""

import json
import sqlite3
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..auth.models import Identity
from ..auth.ownership import OwnershipGuard, Statement
from ..core.database import Database, constraint_name, format_timestamp, utc_timestamp
from ..core.exceptions import ConduitError, InternalError, NotFoundError, UnprocessableEntityError
from .profiles import author_from_row

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

ACCENTS = str.maketrans({
    "á": "a", "à": "a", "ä": "a", "â": "a",
    "é": "e", "è": "e", "ë": "e", "ê": "e",
    "í": "i", "ì": "i", "ï": "i", "î": "i",
    "ó": "o", "ò": "o", "ö": "o", "ô": "o",
    "ú": "u", "ù": "u", "ü": "u", "û": "u",
    "ñ": "n",
    "'": None, "\\": None,
})

ARTICLE_SELECT = '''
    select
        article.article_id,
        article.slug,
        article.title,
        article.description,
        article.body,
        article.tag_list,
        article.created_at,
        article.updated_at,
        exists(
            select 1 from article_favorite
            where article_id = article.article_id and user_id = :viewer
        ) favorited,
        (select count(*) from article_favorite fav where fav.article_id = article.article_id) favorites_count,
        author.username author_username,
        author.bio author_bio,
        author.image author_image,
        exists(
            select 1 from follow
            where followed_user_id = author.user_id and following_user_id = :viewer
        ) following_author
    from article
    inner join "user" author on author.user_id = article.user_id
'''


def slugify(title: str) -> str:
    """
    Turn a title into a URL slug.

    Lowercases, folds common accented vowels and ``ñ``, drops apostrophes and
    backslashes, and joins the remaining alphanumeric runs with hyphens.
    """
    folded = title.lower().translate(ACCENTS)
    cleaned = "".join(c if c.isascii() and c.isalnum() else " " for c in folded)
    return "-".join(cleaned.split())


def article_from_row(row) -> Dict[str, Any]:
    return {
        "slug": row["slug"],
        "title": row["title"],
        "description": row["description"],
        "body": row["body"],
        "tag_list": json.loads(row["tag_list"]),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
        "favorited": bool(row["favorited"]),
        "favorites_count": row["favorites_count"],
        "author": author_from_row(row),
    }


def _viewer_param(viewer: Optional[Identity]) -> Optional[str]:
    return str(viewer) if viewer is not None else None


def _slug_violation(error: sqlite3.IntegrityError, slug: str) -> ConduitError:
    if constraint_name(error) == "article.slug":
        return UnprocessableEntityError.single("slug", f"duplicate article slug: {slug}")
    return InternalError("Unexpected constraint violation on article", cause=error)


class ArticleService:
    """Service for articles."""

    def __init__(self, database: Database, guard: OwnershipGuard):
        """
        Initialize the article service.

        Args:
            database: Backing store
            guard: Ownership guard for owner-restricted mutations
        """
        self.database = database
        self.guard = guard

    def _fetch(self, where: str, params: Dict[str, Any]) -> Dict[str, Any]:
        row = self.database.fetch_one(f"{ARTICLE_SELECT} where {where}", params)
        if row is None:
            raise NotFoundError("Article not found")
        return article_from_row(row)

    def get(self, slug: str, viewer: Optional[Identity]) -> Dict[str, Any]:
        """
        Get one article as seen by ``viewer``.

        Raises:
            NotFoundError: If no article has this slug
        """
        return self._fetch("article.slug = :slug", {"slug": slug, "viewer": _viewer_param(viewer)})

    def list_articles(self, viewer: Optional[Identity], tag: Optional[str] = None,
                      author: Optional[str] = None, favorited: Optional[str] = None,
                      cursor: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        List articles, newest first.

        Args:
            viewer: Caller, if authenticated
            tag: Only articles carrying this tag
            author: Only articles by this username
            favorited: Only articles favorited by this username
            cursor: Only articles created strictly before this time
        """
        rows = self.database.fetch_all(
            f'''
            {ARTICLE_SELECT}
            where (:cursor is null or article.created_at < :cursor)
            and (:tag is null or exists(
                select 1 from json_each(article.tag_list) where json_each.value = :tag
            ))
            and (:author is null or author.username = :author)
            and (:favorited is null or exists(
                select 1
                from article_favorite fav
                inner join "user" fan on fan.user_id = fav.user_id
                where fav.article_id = article.article_id and fan.username = :favorited
            ))
            order by article.created_at desc
            limit :limit
            ''',
            {
                "viewer": _viewer_param(viewer),
                "cursor": format_timestamp(cursor) if cursor else None,
                "tag": tag,
                "author": author,
                "favorited": favorited,
                "limit": PAGE_SIZE,
            }
        )
        return [article_from_row(row) for row in rows]

    def feed(self, viewer: Identity, cursor: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Articles by authors ``viewer`` follows, newest first."""
        rows = self.database.fetch_all(
            f'''
            {ARTICLE_SELECT}
            where article.user_id in (
                select followed_user_id from follow where following_user_id = :viewer
            )
            and (:cursor is null or article.created_at < :cursor)
            order by article.created_at desc
            limit :limit
            ''',
            {
                "viewer": str(viewer),
                "cursor": format_timestamp(cursor) if cursor else None,
                "limit": PAGE_SIZE,
            }
        )
        return [article_from_row(row) for row in rows]

    def create(self, author: Identity, title: str, description: str, body: str,
               tag_list: List[str]) -> Dict[str, Any]:
        """
        Publish an article.

        Raises:
            UnprocessableEntityError: If another article already has this slug
        """
        slug = slugify(title)
        article_id = str(uuid.uuid4())
        now = utc_timestamp()

        try:
            with self.database.transaction() as conn:
                conn.execute(
                    '''
                    insert into article
                        (article_id, user_id, slug, title, description, body, tag_list, created_at, updated_at)
                    values (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ''',
                    (article_id, str(author), slug, title, description, body,
                     json.dumps(sorted(tag_list)), now, now)
                )
        except sqlite3.IntegrityError as e:
            raise _slug_violation(e, slug) from e

        logger.info(f"Article created: {slug}")
        return self._fetch("article.article_id = :article_id",
                           {"article_id": article_id, "viewer": str(author)})

    def update(self, slug: str, caller: Identity, title: Optional[str] = None,
               description: Optional[str] = None, body: Optional[str] = None) -> Dict[str, Any]:
        """
        Update an article the caller owns.

        A new title also changes the slug.

        Raises:
            NotFoundError: If no article has this slug
            ForbiddenError: If the caller is not the author
            UnprocessableEntityError: If the new slug is taken
        """
        new_slug = slugify(title) if title is not None else None

        try:
            result = self.guard.execute(
                probe=Statement("select exists(select 1 from article where slug = ?)", (slug,)),
                mutation=Statement(
                    '''
                    update article
                    set slug = coalesce(?, slug),
                        title = coalesce(?, title),
                        description = coalesce(?, description),
                        body = coalesce(?, body),
                        updated_at = ?
                    where slug = ? and user_id = ?
                    ''',
                    (new_slug, title, description, body, utc_timestamp(), slug, str(caller))
                )
            )
        except sqlite3.IntegrityError as e:
            raise _slug_violation(e, new_slug or slug) from e

        result.raise_for_outcome()
        logger.info(f"Article updated: {slug}")
        # favorited is scoped to this article and this caller
        return self.get(new_slug or slug, caller)

    def delete(self, slug: str, caller: Identity) -> None:
        """
        Delete an article the caller owns.

        Raises:
            NotFoundError: If no article has this slug
            ForbiddenError: If the caller is not the author
        """
        result = self.guard.execute(
            probe=Statement("select exists(select 1 from article where slug = ?)", (slug,)),
            mutation=Statement("delete from article where slug = ? and user_id = ?", (slug, str(caller)))
        )
        result.raise_for_outcome()
        logger.info(f"Article deleted: {slug}")

    def _set_favorite(self, slug: str, caller: Identity, favorite: bool) -> str:
        with self.database.transaction() as conn:
            row = conn.execute("select article_id from article where slug = ?", (slug,)).fetchone()
            if row is None:
                raise NotFoundError("Article not found")

            if favorite:
                conn.execute(
                    '''
                    insert into article_favorite (article_id, user_id, created_at)
                    values (?, ?, ?)
                    on conflict (article_id, user_id) do nothing
                    ''',
                    (row["article_id"], str(caller), utc_timestamp())
                )
            else:
                conn.execute(
                    "delete from article_favorite where article_id = ? and user_id = ?",
                    (row["article_id"], str(caller))
                )
        return row["article_id"]

    def favorite(self, slug: str, caller: Identity) -> Dict[str, Any]:
        """Favorite an article; favoriting twice is a no-op."""
        article_id = self._set_favorite(slug, caller, True)
        return self._fetch("article.article_id = :article_id",
                           {"article_id": article_id, "viewer": str(caller)})

    def unfavorite(self, slug: str, caller: Identity) -> Dict[str, Any]:
        """Remove a favorite; removing a missing favorite is a no-op."""
        article_id = self._set_favorite(slug, caller, False)
        return self._fetch("article.article_id = :article_id",
                           {"article_id": article_id, "viewer": str(caller)})

    def tags(self) -> List[str]:
        """All distinct tags in use, sorted."""
        rows = self.database.fetch_all(
            "select distinct json_each.value tag from article, json_each(article.tag_list) order by tag"
        )
        return [row["tag"] for row in rows]
