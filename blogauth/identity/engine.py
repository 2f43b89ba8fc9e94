"""Identity engine: credential storage, session issuance and validation.

Speaks the Better-Auth email/password semantics over the Better-Auth table
layout. Passwords are hashed before they reach the database; sessions are
opaque random tokens with a sliding expiry.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from blogauth.config import Settings, settings
from blogauth.identity import errors
from blogauth.identity.passwords import hash_password, verify_password
from blogauth.models.auth import Session, User, as_utc, utcnow
from blogauth.repositories.auth import (
    CREDENTIAL_PROVIDER,
    AccountRepository,
    SessionRepository,
    UserRepository,
    VerificationRepository,
)
from blogauth.repositories.errors import RecordNotFoundError, UniqueConstraintError
from blogauth.schemas.auth import SignInRequest, SignUpRequest, is_valid_email

logger = logging.getLogger(__name__)

# Short-lived session lifetime when the user opts out of "remember me"
_NON_REMEMBERED_SESSION = timedelta(days=1)


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata recorded on new sessions."""

    ip_address: str | None = None
    user_agent: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityEngine:
    """Email/password identity operations over one database session."""

    def __init__(self, db: AsyncSession, config: Settings = settings):
        self.db = db
        self.config = config
        self.users = UserRepository(db)
        self.accounts = AccountRepository(db)
        self.sessions = SessionRepository(db)
        self.verifications = VerificationRepository(db)

    def _check_password_length(self, password: str) -> None:
        if len(password) < self.config.min_password_length:
            raise errors.password_too_short()
        if len(password) > self.config.max_password_length:
            raise errors.password_too_long()

    async def _create_session(self, user: User, client: ClientInfo, remember: bool = True) -> Session:
        lifetime = timedelta(seconds=self.config.session_expires_in) if remember else _NON_REMEMBERED_SESSION
        return await self.sessions.create(
            {
                "token": secrets.token_urlsafe(32),
                "userId": user.id,
                "expiresAt": utcnow() + lifetime,
                "ipAddress": client.ip_address,
                "userAgent": client.user_agent,
            }
        )

    async def sign_up_email(self, request: SignUpRequest, client: ClientInfo) -> tuple[User, Session]:
        """Register a user with a credential account and sign them in.

        Raises:
            AuthError: INVALID_EMAIL, PASSWORD_TOO_SHORT, PASSWORD_TOO_LONG or
                USER_ALREADY_EXISTS.
        """
        email = normalize_email(request.email)
        if not is_valid_email(email):
            raise errors.invalid_email()
        self._check_password_length(request.password)

        if await self.users.get_by_email(email) is not None:
            raise errors.user_already_exists()

        try:
            user = await self.users.create(
                {"name": request.name, "email": email, "image": request.image, "emailVerified": False}
            )
            await self.accounts.create(
                {
                    "accountId": user.id,
                    "providerId": CREDENTIAL_PROVIDER,
                    "userId": user.id,
                    "password": hash_password(request.password),
                }
            )
        except UniqueConstraintError as exc:
            # Lost a race with a concurrent signup for the same email
            raise errors.user_already_exists() from exc

        session = await self._create_session(user, client)
        logger.info("User signed up: %s", user.id)
        return user, session

    async def sign_in_email(self, request: SignInRequest, client: ClientInfo) -> tuple[User, Session]:
        """Verify email/password and issue a session.

        Raises:
            AuthError: INVALID_EMAIL or INVALID_EMAIL_OR_PASSWORD.
        """
        email = normalize_email(request.email)
        if not is_valid_email(email):
            raise errors.invalid_email()

        user = await self.users.get_by_email(email)
        if user is None:
            # Spend the same time as a real check so unknown emails are not revealed
            hash_password(request.password)
            logger.warning("Sign-in failed: unknown email")
            raise errors.invalid_credentials()

        account = await self.accounts.get_credential_account(user.id)
        if account is None or not account.password or not verify_password(request.password, account.password):
            logger.warning("Sign-in failed for user %s", user.id)
            raise errors.invalid_credentials()

        session = await self._create_session(user, client, remember=request.rememberMe)
        logger.info("User signed in: %s", user.id)
        return user, session

    async def get_session(self, token: str) -> Session | None:
        """Resolve a token to an active session (user loaded).

        Expired sessions are deleted. Remembered sessions older than the
        update age get their expiry pushed forward. Non-remembered sessions
        keep their original expiry.
        """
        session = await self.sessions.get_by_token(token)
        if session is None:
            return None

        now = utcnow()
        if not session.is_active(now):
            await self.sessions.delete({"id": session.id})
            return None

        if as_utc(session.expiresAt) - as_utc(session.createdAt) <= _NON_REMEMBERED_SESSION:
            return session

        expires_in = timedelta(seconds=self.config.session_expires_in)
        update_age = timedelta(seconds=self.config.session_update_age)
        if as_utc(session.expiresAt) - expires_in + update_age <= now:
            session.expiresAt = now + expires_in
            await self.db.flush()
        return session

    async def sign_out(self, token: str) -> bool:
        """Delete the session for a token. Returns whether one existed."""
        deleted = await self.sessions.delete_many({"token": token})
        if deleted:
            logger.info("Session signed out")
        return bool(deleted)

    async def request_email_verification(self, email: str) -> str | None:
        """Create a verification token for a registered email.

        Any previous pending token for the email is replaced. Returns None
        for unknown emails. Delivering the token is left to the caller.
        """
        email = normalize_email(email)
        if await self.users.get_by_email(email) is None:
            logger.info("Verification requested for unknown email")
            return None

        value = secrets.token_urlsafe(32)
        await self.verifications.delete_many({"identifier": email})
        await self.verifications.create(
            {
                "identifier": email,
                "value": value,
                "expiresAt": utcnow() + timedelta(seconds=self.config.verification_expires_in),
            }
        )
        return value

    async def verify_email(self, email: str, token: str) -> User:
        """Consume a verification token and mark the email verified.

        Raises:
            AuthError: INVALID_TOKEN or TOKEN_EXPIRED.
        """
        email = normalize_email(email)
        record = await self.verifications.get_latest(email)
        if record is None or not hmac.compare_digest(record.value.encode(), token.encode()):
            raise errors.invalid_token()

        if as_utc(record.expiresAt) <= utcnow():
            await self.verifications.delete({"id": record.id})
            # Persist the purge; the request session rolls back on the error below
            await self.db.commit()
            raise errors.token_expired()

        try:
            user = await self.users.update({"email": email}, {"emailVerified": True})
        except RecordNotFoundError as exc:
            raise errors.invalid_token() from exc
        await self.verifications.delete({"id": record.id})
        logger.info("Email verified for user %s", user.id)
        return user
