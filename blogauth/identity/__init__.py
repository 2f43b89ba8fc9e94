"""Identity engine: credentials, sessions and verification tokens."""

from blogauth.identity.engine import ClientInfo, IdentityEngine
from blogauth.identity.errors import AuthError

__all__ = ["AuthError", "ClientInfo", "IdentityEngine"]
