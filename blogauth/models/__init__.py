"""SQLAlchemy models."""

from blogauth.models.auth import Account, Session, User, Verification
from blogauth.models.post import Post

__all__ = [
    "Account",
    "Post",
    "Session",
    "User",
    "Verification",
]
