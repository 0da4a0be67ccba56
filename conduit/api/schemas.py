"""
API schemas for the Conduit API.

Request and response bodies follow the RealWorld wire format: every payload
is wrapped in a single root key (``{"user": {...}}``) and field names are
camelCase on the wire while staying snake_case in Python.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request models

class NewUser(CamelModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class NewUserRequest(CamelModel):
    """Registration request."""
    user: NewUser


class LoginUser(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginUserRequest(CamelModel):
    """Login request."""
    user: LoginUser


class UpdateUser(CamelModel):
    email: Optional[str] = Field(default=None, min_length=1)
    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = None
    image: Optional[str] = None


class UpdateUserRequest(CamelModel):
    """Partial account update; omitted fields keep their value."""
    user: UpdateUser


class CreateArticle(CamelModel):
    title: str = Field(..., min_length=1)
    description: str
    body: str
    tag_list: List[str] = Field(default_factory=list)


class CreateArticleRequest(CamelModel):
    article: CreateArticle


class UpdateArticle(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    body: Optional[str] = None


class UpdateArticleRequest(CamelModel):
    article: UpdateArticle


class AddComment(CamelModel):
    body: str = Field(..., min_length=1)


class AddCommentRequest(CamelModel):
    comment: AddComment


# Response models

class User(CamelModel):
    email: str
    token: str = Field(..., description="Session token, including the Bearer scheme prefix")
    username: str
    bio: str
    image: Optional[str] = None


class UserResponse(CamelModel):
    user: User


class Profile(CamelModel):
    username: str
    bio: str
    image: Optional[str] = None
    following: bool


class ProfileResponse(CamelModel):
    profile: Profile


class Article(CamelModel):
    slug: str
    title: str
    description: str
    body: str
    tag_list: List[str]
    created_at: str
    updated_at: str
    favorited: bool
    favorites_count: int
    author: Profile


class ArticleResponse(CamelModel):
    article: Article


class MultipleArticlesResponse(CamelModel):
    articles: List[Article]
    articles_count: int


class TagsResponse(CamelModel):
    tags: List[str]


class Comment(CamelModel):
    id: int
    created_at: str
    updated_at: str
    body: str
    author: Profile


class CommentResponse(CamelModel):
    comment: Comment


class MultipleCommentsResponse(CamelModel):
    comments: List[Comment]


class HealthResponse(BaseModel):
    status: str
