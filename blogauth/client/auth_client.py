"""HTTP client binding for the identity API.

Mirrors the shape of the browser SDK: ``sign_in.email``, ``sign_up.email``,
``sign_out`` and ``use_session``. HTTP error responses come back as
``AuthResult.error``; transport failures raise ``httpx.HTTPError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from blogauth.client.session_store import SessionStore
from blogauth.schemas.auth import SessionData

logger = logging.getLogger(__name__)

DEFAULT_BASE_PATH = "/api/auth"


@dataclass(frozen=True)
class AuthErrorDetail:
    status: int
    code: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an identity call: either ``data`` or ``error``."""

    data: Any = None
    error: AuthErrorDetail | None = None


def _error_from_response(response: httpx.Response) -> AuthErrorDetail:
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return AuthErrorDetail(status=response.status_code)

    message = body.get("message")
    if message is None and isinstance(body.get("detail"), str):
        message = body["detail"]
    return AuthErrorDetail(status=response.status_code, code=body.get("code"), message=message)


class _SignIn:
    def __init__(self, client: AuthClient):
        self._client = client

    async def email(
        self,
        email: str,
        password: str,
        callback_url: str | None = "/",
        remember_me: bool = True,
    ) -> AuthResult:
        return await self._client._authenticate(
            "/sign-in/email",
            {"email": email, "password": password, "callbackURL": callback_url, "rememberMe": remember_me},
        )


class _SignUp:
    def __init__(self, client: AuthClient):
        self._client = client

    async def email(
        self,
        email: str,
        password: str,
        name: str,
        callback_url: str | None = "/",
        image: str | None = None,
    ) -> AuthResult:
        return await self._client._authenticate(
            "/sign-up/email",
            {"email": email, "password": password, "name": name, "callbackURL": callback_url, "image": image},
        )


class AuthClient:
    """Client for the identity API that keeps a SessionStore current.

    Args:
        base_url: Origin of the server, e.g. ``http://localhost:8000``.
        base_path: Mount point of the identity routes.
        transport: Optional httpx transport (e.g. ``httpx.ASGITransport``).
        token: Session token to start with.
        headers: Extra headers sent with every request.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        base_path: str = DEFAULT_BASE_PATH,
        transport: httpx.AsyncBaseTransport | None = None,
        token: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            headers=headers,
            timeout=timeout,
        )
        self._base_path = base_path.rstrip("/")
        self._token = token
        self._store = SessionStore()
        self.sign_in = _SignIn(self)
        self.sign_up = _SignUp(self)

    @property
    def session_token(self) -> str | None:
        return self._token

    def use_session(self) -> SessionStore:
        """The reactive session state shared by every subscriber of this client."""
        return self._store

    async def _call(self, method: str, path: str, json: dict | None = None) -> AuthResult:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None
        response = await self._http.request(method, f"{self._base_path}{path}", json=json, headers=headers)
        if response.is_error:
            return AuthResult(error=_error_from_response(response))
        return AuthResult(data=response.json())

    async def _authenticate(self, path: str, body: dict) -> AuthResult:
        result = await self._call("POST", path, json=body)
        if result.error is None:
            self._token = result.data.get("token")
            await self.get_session()
        return result

    async def sign_out(self) -> AuthResult:
        """End the session server-side and mark the store anonymous."""
        result = await self._call("POST", "/sign-out")
        self._token = None
        self._store.clear()
        return result

    async def get_session(self) -> AuthResult:
        """Fetch the current session and publish it to the store."""
        result = await self._call("GET", "/get-session")
        if result.error is not None:
            logger.warning("Session read failed with status %s", result.error.status)
            self._store.clear()
            return result

        data = SessionData.model_validate(result.data) if result.data else None
        self._store.set_session(data)
        return AuthResult(data=data)

    async def aclose(self) -> None:
        """Close the HTTP connection pool and deregister session subscribers."""
        await self._http.aclose()
        self._store.close()

    async def __aenter__(self) -> AuthClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
