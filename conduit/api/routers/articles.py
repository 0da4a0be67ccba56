"""
Article API endpoints.

Update and delete are owner-only. The ownership check and the mutation happen
atomically inside the service, which reports 404 for an unknown slug and 403
for an article owned by someone else.
"""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Response

from ..dependencies import get_article_service
from ..schemas import (
    Article, ArticleResponse, CreateArticleRequest,
    MultipleArticlesResponse, TagsResponse, UpdateArticleRequest
)
from ...auth.middleware import maybe_auth, require_auth
from ...auth.models import Identity
from ...services import ArticleService

router = APIRouter(prefix="/api", tags=["articles"])
logger = logging.getLogger(__name__)


def multiple_articles(articles) -> MultipleArticlesResponse:
    return MultipleArticlesResponse(
        articles=[Article(**article) for article in articles],
        articles_count=len(articles)
    )


@router.get("/articles", response_model=MultipleArticlesResponse)
def list_articles(tag: Optional[str] = None,
                  author: Optional[str] = None,
                  favorited: Optional[str] = None,
                  cursor: Optional[datetime] = None,
                  viewer: Optional[Identity] = Depends(maybe_auth),
                  articles: ArticleService = Depends(get_article_service)) -> MultipleArticlesResponse:
    """
    List recent articles, newest first, twenty at a time.

    Pass the ``createdAt`` of the last article seen as ``cursor`` to get the
    next page.
    """
    return multiple_articles(
        articles.list_articles(viewer, tag=tag, author=author, favorited=favorited, cursor=cursor)
    )


# Must be declared before /articles/{slug}
@router.get("/articles/feed", response_model=MultipleArticlesResponse)
def feed_articles(cursor: Optional[datetime] = None,
                  identity: Identity = Depends(require_auth),
                  articles: ArticleService = Depends(get_article_service)) -> MultipleArticlesResponse:
    """Recent articles by followed authors."""
    return multiple_articles(articles.feed(identity, cursor=cursor))


@router.post("/articles", response_model=ArticleResponse)
def create_article(request: CreateArticleRequest,
                   identity: Identity = Depends(require_auth),
                   articles: ArticleService = Depends(get_article_service)) -> ArticleResponse:
    article = articles.create(
        identity,
        title=request.article.title,
        description=request.article.description,
        body=request.article.body,
        tag_list=request.article.tag_list
    )
    return ArticleResponse(article=Article(**article))


@router.get("/articles/{slug}", response_model=ArticleResponse)
def get_article(slug: str,
                viewer: Optional[Identity] = Depends(maybe_auth),
                articles: ArticleService = Depends(get_article_service)) -> ArticleResponse:
    return ArticleResponse(article=Article(**articles.get(slug, viewer)))


@router.put("/articles/{slug}", response_model=ArticleResponse)
def update_article(slug: str,
                   request: UpdateArticleRequest,
                   identity: Identity = Depends(require_auth),
                   articles: ArticleService = Depends(get_article_service)) -> ArticleResponse:
    article = articles.update(
        slug,
        identity,
        title=request.article.title,
        description=request.article.description,
        body=request.article.body
    )
    return ArticleResponse(article=Article(**article))


@router.delete("/articles/{slug}")
def delete_article(slug: str,
                   identity: Identity = Depends(require_auth),
                   articles: ArticleService = Depends(get_article_service)) -> Response:
    articles.delete(slug, identity)
    return Response(status_code=200)


@router.post("/articles/{slug}/favorite", response_model=ArticleResponse)
def favorite_article(slug: str,
                     identity: Identity = Depends(require_auth),
                     articles: ArticleService = Depends(get_article_service)) -> ArticleResponse:
    return ArticleResponse(article=Article(**articles.favorite(slug, identity)))


@router.delete("/articles/{slug}/favorite", response_model=ArticleResponse)
def unfavorite_article(slug: str,
                       identity: Identity = Depends(require_auth),
                       articles: ArticleService = Depends(get_article_service)) -> ArticleResponse:
    return ArticleResponse(article=Article(**articles.unfavorite(slug, identity)))


@router.get("/tags", response_model=TagsResponse)
def get_tags(articles: ArticleService = Depends(get_article_service)) -> TagsResponse:
    return TagsResponse(tags=articles.tags())
