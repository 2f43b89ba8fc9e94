"""Models for the identity tables (user, session, account, verification).

Table and column names follow the Better-Auth layout so an existing
Better-Auth database can be served as-is. Dependent rows are removed by the
database through ON DELETE CASCADE.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blogauth.database import Base

if TYPE_CHECKING:
    from blogauth.models.post import Post


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """A registered identity."""

    __tablename__ = "user"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    emailVerified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updatedAt: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    accounts: Mapped[list[Account]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    sessions: Mapped[list[Session]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    posts: Mapped[list[Post]] = relationship(
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Post.createdAt",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class Session(Base):
    """An authenticated context identified by an opaque token."""

    __tablename__ = "session"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=new_id)
    expiresAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    token: Mapped[str] = mapped_column(Text, unique=True, index=True, nullable=False)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updatedAt: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    ipAddress: Mapped[str | None] = mapped_column(Text, nullable=True)
    userAgent: Mapped[str | None] = mapped_column(Text, nullable=True)
    userId: Mapped[str] = mapped_column(
        Text, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user: Mapped[User] = relationship(back_populates="sessions")

    def is_active(self, now: datetime | None = None) -> bool:
        """A session is valid only while now < expiresAt."""
        now = now or utcnow()
        return as_utc(now) < as_utc(self.expiresAt)


class Account(Base):
    """Credential binding of a user under a provider ("credential" for passwords)."""

    __tablename__ = "account"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=new_id)
    accountId: Mapped[str] = mapped_column(Text, nullable=False)
    providerId: Mapped[str] = mapped_column(Text, nullable=False)
    userId: Mapped[str] = mapped_column(
        Text, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    accessToken: Mapped[str | None] = mapped_column(Text, nullable=True)
    refreshToken: Mapped[str | None] = mapped_column(Text, nullable=True)
    idToken: Mapped[str | None] = mapped_column(Text, nullable=True)
    accessTokenExpiresAt: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refreshTokenExpiresAt: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    scope: Mapped[str | None] = mapped_column(Text, nullable=True)
    password: Mapped[str | None] = mapped_column(Text, nullable=True)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updatedAt: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship(back_populates="accounts")


class Verification(Base):
    """Short-lived proof for out-of-band confirmation (e.g. email)."""

    __tablename__ = "verification"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=new_id)
    identifier: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expiresAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updatedAt: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
