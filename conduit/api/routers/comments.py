"""
Comment API endpoints.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Path, Response

from ..dependencies import get_comment_service
from ..schemas import AddCommentRequest, Comment, CommentResponse, MultipleCommentsResponse
from ...auth.middleware import maybe_auth, require_auth
from ...auth.models import Identity
from ...services import CommentService

router = APIRouter(prefix="/api/articles/{slug}/comments", tags=["comments"])
logger = logging.getLogger(__name__)

# Comment ids are SQLite INTEGER (signed 64-bit)
MAX_COMMENT_ID = 2 ** 63 - 1


@router.get("", response_model=MultipleCommentsResponse)
def list_comments(slug: str,
                  viewer: Optional[Identity] = Depends(maybe_auth),
                  comments: CommentService = Depends(get_comment_service)) -> MultipleCommentsResponse:
    """Comments on an article, oldest first."""
    return MultipleCommentsResponse(
        comments=[Comment(**comment) for comment in comments.list_comments(slug, viewer)]
    )


@router.post("", response_model=CommentResponse)
def add_comment(slug: str,
                request: AddCommentRequest,
                identity: Identity = Depends(require_auth),
                comments: CommentService = Depends(get_comment_service)) -> CommentResponse:
    return CommentResponse(comment=Comment(**comments.add(slug, identity, request.comment.body)))


@router.delete("/{comment_id}")
def delete_comment(slug: str,
                   comment_id: int = Path(..., ge=1, le=MAX_COMMENT_ID),
                   identity: Identity = Depends(require_auth),
                   comments: CommentService = Depends(get_comment_service)) -> Response:
    """Delete a comment; only its author may do so."""
    comments.delete(slug, comment_id, identity)
    return Response(status_code=200)
