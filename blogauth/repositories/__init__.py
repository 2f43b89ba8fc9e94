"""Repository layer for data access.

Repositories encapsulate database operations and provide a typed interface
(create, find_unique, find_many, update, delete, delete_many) over each model.
"""

from blogauth.repositories.auth import (
    AccountRepository,
    SessionRepository,
    UserRepository,
    VerificationRepository,
)
from blogauth.repositories.errors import (
    ForeignKeyConstraintError,
    NullConstraintError,
    PersistenceError,
    RecordNotFoundError,
    UniqueConstraintError,
)
from blogauth.repositories.post import PostRepository

__all__ = [
    "AccountRepository",
    "ForeignKeyConstraintError",
    "NullConstraintError",
    "PersistenceError",
    "PostRepository",
    "RecordNotFoundError",
    "SessionRepository",
    "UniqueConstraintError",
    "UserRepository",
    "VerificationRepository",
]
