"""Persistence errors with stable codes.

Integrity failures raised by the database driver are translated into this
hierarchy so callers can branch on a code (e.g. "P2002" for a duplicate
email) without knowing which database is underneath.
"""

from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError

# PostgreSQL SQLSTATE values
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"
_PG_NOT_NULL_VIOLATION = "23502"

_SQLITE_UNIQUE_TARGET = re.compile(r"UNIQUE constraint failed: (.+)$")
_PG_UNIQUE_TARGET = re.compile(r"Key \((.+?)\)=")


class PersistenceError(Exception):
    """Base class for translated persistence failures."""

    code: str = "P2000"

    def __init__(self, message: str, target: tuple[str, ...] = ()):
        super().__init__(message)
        self.target = target


class UniqueConstraintError(PersistenceError):
    """A unique key (e.g. user email) already exists."""

    code = "P2002"


class ForeignKeyConstraintError(PersistenceError):
    """A referenced row does not exist."""

    code = "P2003"


class NullConstraintError(PersistenceError):
    """A required column was left empty."""

    code = "P2011"


class RecordNotFoundError(PersistenceError):
    """The record targeted by an update or delete does not exist."""

    code = "P2025"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return (
        getattr(orig, "sqlstate", None)
        or getattr(orig, "pgcode", None)
        or getattr(getattr(orig, "__cause__", None), "sqlstate", None)
    )


def _unique_target(message: str) -> tuple[str, ...]:
    match = _SQLITE_UNIQUE_TARGET.search(message)
    if match:
        # "user.email, user.name" -> ("email", "name")
        return tuple(part.strip().split(".")[-1] for part in match.group(1).split(","))
    match = _PG_UNIQUE_TARGET.search(message)
    if match:
        return tuple(part.strip().strip('"') for part in match.group(1).split(","))
    return ()


def translate_integrity_error(exc: IntegrityError) -> PersistenceError:
    """Map a driver IntegrityError onto the PersistenceError hierarchy."""
    message = str(exc.orig)
    state = _sqlstate(exc)

    if state == _PG_UNIQUE_VIOLATION or "UNIQUE constraint failed" in message:
        return UniqueConstraintError(
            f"Unique constraint failed: {message}", target=_unique_target(message)
        )
    if state == _PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in message:
        return ForeignKeyConstraintError(f"Foreign key constraint failed: {message}")
    if state == _PG_NOT_NULL_VIOLATION or "NOT NULL constraint failed" in message:
        return NullConstraintError(f"Null constraint violation: {message}")
    return PersistenceError(message)
