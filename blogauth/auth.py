"""Session token authentication for API routes.

A request is authenticated by an ``Authorization: Bearer <token>`` header or
by the signed session cookie set at sign-in. Either way the token is checked
against the session table.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blogauth.config import settings
from blogauth.database import get_db
from blogauth.identity.cookies import unsign_token
from blogauth.models.auth import Session, utcnow

bearer_scheme = HTTPBearer(auto_error=False)


def extract_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Token from the bearer header, else from a correctly signed cookie."""
    if credentials is not None:
        return credentials.credentials

    cookie = request.cookies.get(settings.session_cookie_name)
    if cookie:
        return unsign_token(cookie, settings.auth_secret)
    return None


async def _active_session_user_id(db: AsyncSession, token: str) -> str | None:
    result = await db.execute(
        select(Session.userId).where(
            Session.token == token,
            Session.expiresAt > utcnow(),
        )
    )
    return result.scalar_one_or_none()


async def verify_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> str:
    """Validate the session token of a request.

    Returns:
        The authenticated user_id.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    token = extract_session_token(request, credentials)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
        )

    user_id = await _active_session_user_id(db, token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return user_id

