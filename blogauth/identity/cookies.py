"""Signed session cookie values: ``<token>.<signature>`` via itsdangerous."""

from itsdangerous import BadSignature, Signer

SESSION_COOKIE_SALT = "blogauth.session"


def _signer(secret: str) -> Signer:
    return Signer(secret, salt=SESSION_COOKIE_SALT)


def sign_token(token: str, secret: str) -> str:
    return _signer(secret).sign(token).decode("utf-8")


def unsign_token(value: str, secret: str) -> str | None:
    """Return the token if the signature matches, else None."""
    try:
        token = _signer(secret).unsign(value).decode("utf-8")
    except BadSignature:
        return None
    return token or None
