"""
The browser surface the sign-in flow drives. signin_client.dom adapts a real window object
to these protocols; tests use in-memory fakes.
"""
from typing import Any, Protocol

from signin_client.strategy import Environment


class NavigationRefused(Exception):
    """The browser would not navigate the page (blocked by an extension, sandboxed frame)."""


class WindowHandle(Protocol):
    """Another window this page holds a reference to (a popup, or the opener)."""

    @property
    def closed(self) -> bool: ...

    def post_message(self, message: dict[str, Any], target_origin: str) -> None: ...

    def close(self) -> None: ...


class Page(Protocol):
    """The current top-level page."""

    @property
    def origin(self) -> str: ...

    @property
    def path(self) -> str: ...

    @property
    def query(self) -> str: ...

    @property
    def opener(self) -> WindowHandle | None: ...

    def environment(self) -> Environment: ...

    def open_window(self, url: str, name: str, features: str) -> WindowHandle | None:
        """None when the browser refused to open it."""
        ...

    def navigate(self, url: str) -> None:
        """Raises NavigationRefused when the browser will not leave the page."""
        ...

    def reload(self) -> None: ...

    def close(self) -> None: ...
