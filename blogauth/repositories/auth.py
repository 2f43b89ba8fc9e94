"""Repositories for the identity tables."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from blogauth.models.auth import Account, Session, User, Verification
from blogauth.repositories.base import ModelRepository

CREDENTIAL_PROVIDER = "credential"


class UserRepository(ModelRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        return await self.find_unique({"email": email})


class AccountRepository(ModelRepository[Account]):
    model = Account

    async def get_credential_account(self, user_id: str) -> Account | None:
        """The password account of a user, if any."""
        return await self.find_first({"userId": user_id, "providerId": CREDENTIAL_PROVIDER})


class SessionRepository(ModelRepository[Session]):
    model = Session

    async def get_by_token(self, token: str) -> Session | None:
        """Session with its user loaded, whether or not it has expired."""
        result = await self.db.execute(
            select(Session).options(selectinload(Session.user)).where(Session.token == token)
        )
        return result.scalar_one_or_none()


class VerificationRepository(ModelRepository[Verification]):
    model = Verification

    async def get_latest(self, identifier: str) -> Verification | None:
        return await self.find_first(
            {"identifier": identifier},
            order_by={"createdAt": "desc"},
        )
