"""Identity API routes (email/password sign-up, sign-in, sign-out, session).

Mounted under /api/auth. Successful sign-in and sign-up return the session
token in the body and set it as a signed HttpOnly cookie.
"""

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from blogauth.auth import bearer_scheme, extract_session_token
from blogauth.config import settings
from blogauth.database import get_db
from blogauth.identity.cookies import sign_token
from blogauth.identity.engine import ClientInfo, IdentityEngine
from blogauth.schemas.auth import (
    SessionData,
    SessionResponse,
    SignInRequest,
    SignInResponse,
    SignOutResponse,
    SignUpRequest,
    SignUpResponse,
    StatusResponse,
    UserResponse,
    VerificationEmailRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def client_info(request: Request) -> ClientInfo:
    """IP address (honouring X-Forwarded-For) and user agent of a request."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return ClientInfo(ip_address=ip_address, user_agent=request.headers.get("user-agent"))


def set_session_cookie(response: Response, token: str, remember: bool = True) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sign_token(token, settings.auth_secret),
        max_age=settings.session_expires_in if remember else None,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


@router.post("/sign-up/email", response_model=SignUpResponse)
async def sign_up_email(
    body: SignUpRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SignUpResponse:
    """Register with email and password; the new user is signed in.

    Raises:
        AuthError: 400 for invalid email or password length, 422 if the
            email is already registered.
    """
    user, session = await IdentityEngine(db).sign_up_email(body, client_info(request))
    set_session_cookie(response, session.token)
    return SignUpResponse(token=session.token, user=UserResponse.model_validate(user))


@router.post("/sign-in/email", response_model=SignInResponse)
async def sign_in_email(
    body: SignInRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SignInResponse:
    """Sign in with email and password.

    Raises:
        AuthError: 401 for unknown email or wrong password.
    """
    user, session = await IdentityEngine(db).sign_in_email(body, client_info(request))
    set_session_cookie(response, session.token, remember=body.rememberMe)
    return SignInResponse(
        token=session.token,
        user=UserResponse.model_validate(user),
        redirect=body.callbackURL is not None,
        url=body.callbackURL,
    )


@router.post("/sign-out", response_model=SignOutResponse)
async def sign_out(
    request: Request,
    response: Response,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> SignOutResponse:
    """Invalidate the current session. Succeeds even without one."""
    token = extract_session_token(request, credentials)
    if token is not None:
        await IdentityEngine(db).sign_out(token)
    clear_session_cookie(response)
    return SignOutResponse()


@router.get("/get-session", response_model=SessionData | None)
async def get_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> SessionData | None:
    """Current session and user, or null when not signed in."""
    token = extract_session_token(request, credentials)
    if token is None:
        return None

    session = await IdentityEngine(db).get_session(token)
    if session is None:
        return None
    return SessionData(
        session=SessionResponse.model_validate(session),
        user=UserResponse.model_validate(session.user),
    )


@router.post("/send-verification-email", response_model=StatusResponse)
async def send_verification_email(
    body: VerificationEmailRequest,
    db: AsyncSession = Depends(get_db),
) -> StatusResponse:
    """Issue an email verification token.

    Always answers the same way so registered emails cannot be probed.
    """
    await IdentityEngine(db).request_email_verification(body.email)
    return StatusResponse()


@router.get("/verify-email", response_model=StatusResponse)
async def verify_email(
    email: str = Query(...),
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
) -> StatusResponse:
    """Consume a verification token and mark the email verified.

    Raises:
        AuthError: 400 for an unknown or expired token.
    """
    await IdentityEngine(db).verify_email(email, token)
    return StatusResponse()
