"""Pydantic schemas for the identity API.

Field names follow the Better-Auth wire format (camelCase) so existing
clients of that protocol work unchanged.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Standard email pattern (same rule the login form applies client-side)
EMAIL_PATTERN = re.compile(
    r"^(?!\.)(?!.*\.\.)([A-Za-z0-9_'+\-\.]*)[A-Za-z0-9_+-]@([A-Za-z0-9][A-Za-z0-9\-]*\.)+[A-Za-z]{2,}$"
)


def is_valid_email(value: str) -> bool:
    return bool(value) and EMAIL_PATTERN.fullmatch(value) is not None


# === Requests ===


class SignUpRequest(BaseModel):
    """Body of POST /sign-up/email."""

    name: str
    email: str
    password: str
    image: str | None = None
    callbackURL: str | None = None


class SignInRequest(BaseModel):
    """Body of POST /sign-in/email."""

    email: str
    password: str
    callbackURL: str | None = None
    rememberMe: bool = True


class VerificationEmailRequest(BaseModel):
    email: str
    callbackURL: str | None = None


# === Responses ===


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    emailVerified: bool
    image: str | None = None
    createdAt: datetime
    updatedAt: datetime


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    token: str
    userId: str
    expiresAt: datetime
    ipAddress: str | None = None
    userAgent: str | None = None
    createdAt: datetime
    updatedAt: datetime


class SessionData(BaseModel):
    """Current session and its user, as returned by GET /get-session."""

    session: SessionResponse
    user: UserResponse


class SignUpResponse(BaseModel):
    token: str | None
    user: UserResponse


class SignInResponse(BaseModel):
    token: str
    user: UserResponse
    redirect: bool = False
    url: str | None = None


class SignOutResponse(BaseModel):
    success: bool = True


class StatusResponse(BaseModel):
    status: bool = True


class AuthErrorResponse(BaseModel):
    code: str
    message: str = Field(description="Human readable error message")
