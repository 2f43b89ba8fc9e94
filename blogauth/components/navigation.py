"""Full-page navigation.

Components never change routes in place: after sign-in they ask the
navigator for a full page load so every part of the UI re-reads the
session from the server.
"""

from typing import Protocol


class Navigator(Protocol):
    def navigate(self, url: str) -> None:
        """Perform a full page load of ``url``."""
        ...


class RedirectNavigator:
    """Navigator for server-rendered pages.

    Records the requested location; the route answers with a redirect to it.
    """

    def __init__(self) -> None:
        self.target: str | None = None
        self.count = 0

    def navigate(self, url: str) -> None:
        self.target = url
        self.count += 1
