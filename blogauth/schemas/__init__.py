"""Pydantic schemas for API requests and responses."""

from blogauth.schemas.auth import (
    SessionData,
    SessionResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UserResponse,
)
from blogauth.schemas.post import PostCreate, PostListResponse, PostResponse, PostWithAuthorResponse

__all__ = [
    "PostCreate",
    "PostListResponse",
    "PostResponse",
    "PostWithAuthorResponse",
    "SessionData",
    "SessionResponse",
    "SignInRequest",
    "SignInResponse",
    "SignUpRequest",
    "SignUpResponse",
    "UserResponse",
]
