"""Pydantic schemas for the Post API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from blogauth.schemas.auth import UserResponse


class PostCreate(BaseModel):
    """Schema for creating a post. The author is the signed-in user."""

    title: str = Field(min_length=1, max_length=200)
    content: str | None = Field(default=None, max_length=50000)
    published: bool = False


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str | None
    published: bool
    authorId: str
    createdAt: datetime
    updatedAt: datetime


class PostWithAuthorResponse(PostResponse):
    author: UserResponse


class PostListResponse(BaseModel):
    """List of posts, newest first."""

    items: list[PostWithAuthorResponse]
    skip: int
    limit: int
