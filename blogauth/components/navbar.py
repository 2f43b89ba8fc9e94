"""Session-aware navigation bar."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

from blogauth.client.session_store import SessionState
from blogauth.schemas.auth import UserResponse
from blogauth.templating import render_fragment

if TYPE_CHECKING:
    from blogauth.client.auth_client import AuthClient, AuthResult

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/9.x/adventurer/svg?seed={seed}"


class NavbarStatus(str, enum.Enum):
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class NavbarView:
    status: NavbarStatus
    display_name: str | None = None
    avatar_url: str | None = None
    initials: str | None = None


def avatar_seed(user: UserResponse) -> str:
    """First word of the name, else the local part of the email."""
    first_name = user.name.split(" ")[0] if user.name else ""
    return first_name or user.email.split("@")[0]


def initials_for(user: UserResponse) -> str:
    words = user.name.split() if user.name else []
    if words:
        return "".join(word[0] for word in words[:2]).upper()
    return user.email[:1].upper()


def avatar_url(user: UserResponse) -> str:
    if user.image:
        return user.image
    return AVATAR_URL_TEMPLATE.format(seed=quote(avatar_seed(user), safe=""))


def build_view(state: SessionState) -> NavbarView:
    if state.is_pending:
        return NavbarView(status=NavbarStatus.PENDING)
    if state.data is None or state.data.user is None:
        return NavbarView(status=NavbarStatus.ANONYMOUS)

    user = state.data.user
    return NavbarView(
        status=NavbarStatus.AUTHENTICATED,
        display_name=avatar_seed(user),
        avatar_url=avatar_url(user),
        initials=initials_for(user),
    )


class Navbar:
    """Renders the current session state of an AuthClient.

    Subscribes to the client's session store on construction; call
    ``close()`` to unsubscribe.
    """

    def __init__(self, client: AuthClient):
        self._client = client
        store = client.use_session()
        self.view = build_view(store.state)
        self._unsubscribe = store.subscribe(self._on_session_change)

    def _on_session_change(self, state: SessionState) -> None:
        self.view = build_view(state)

    async def sign_out(self) -> AuthResult:
        """Sign out. The view follows from the store update, not a navigation."""
        return await self._client.sign_out()

    def render(self) -> str:
        return render_fragment("navbar.html", view=self.view, status=NavbarStatus)

    def close(self) -> None:
        self._unsubscribe()
