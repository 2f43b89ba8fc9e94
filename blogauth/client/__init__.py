"""Client binding for the identity API."""

from blogauth.client.auth_client import AuthClient, AuthErrorDetail, AuthResult
from blogauth.client.session_store import SessionState, SessionStore

__all__ = ["AuthClient", "AuthErrorDetail", "AuthResult", "SessionState", "SessionStore"]
