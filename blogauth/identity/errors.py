"""Identity engine errors.

Rendered to clients as ``{"code": ..., "message": ...}`` with the carried
HTTP status by the handler registered in ``blogauth.main``.
"""

from fastapi import status


class AuthError(Exception):
    """An identity operation failed in a way the caller should see."""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def invalid_email() -> AuthError:
    return AuthError(status.HTTP_400_BAD_REQUEST, "INVALID_EMAIL", "Invalid email")


def password_too_short() -> AuthError:
    return AuthError(status.HTTP_400_BAD_REQUEST, "PASSWORD_TOO_SHORT", "Password too short")


def password_too_long() -> AuthError:
    return AuthError(status.HTTP_400_BAD_REQUEST, "PASSWORD_TOO_LONG", "Password too long")


def user_already_exists() -> AuthError:
    return AuthError(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "USER_ALREADY_EXISTS",
        "User already exists. Use another email.",
    )


def invalid_credentials() -> AuthError:
    return AuthError(
        status.HTTP_401_UNAUTHORIZED,
        "INVALID_EMAIL_OR_PASSWORD",
        "Invalid email or password",
    )


def invalid_token() -> AuthError:
    return AuthError(status.HTTP_400_BAD_REQUEST, "INVALID_TOKEN", "Invalid token")


def token_expired() -> AuthError:
    return AuthError(status.HTTP_400_BAD_REQUEST, "TOKEN_EXPIRED", "Token expired")
