"""
Adapters from a real browser `window` (Pyodide's js.window, or anything with the same attribute
names) to the Page / WindowHandle / KeyValueStore ports.
"""
import json
from typing import Any, Callable

from signin_client.browser import NavigationRefused
from signin_client.strategy import Environment


def _is_null(value: Any) -> bool:
    # Pyodide maps JS undefined to None and, depending on version, null to a JsNull sentinel
    return value is None or type(value).__name__ == "JsNull"


class JsWindowHandle:
    """Another browsing context (popup or opener). Messages travel as JSON strings."""

    def __init__(self, win: Any):
        self._win = win

    @property
    def closed(self) -> bool:
        return bool(self._win.closed)

    def post_message(self, message: dict[str, Any], target_origin: str) -> None:
        self._win.postMessage(json.dumps(message), target_origin)

    def close(self) -> None:
        self._win.close()


class BrowserPage:
    def __init__(self, window: Any):
        self.window = window

    @property
    def origin(self) -> str:
        return self.window.location.origin

    @property
    def path(self) -> str:
        return self.window.location.pathname

    @property
    def query(self) -> str:
        return self.window.location.search

    @property
    def opener(self) -> JsWindowHandle | None:
        opener = self.window.opener
        return None if _is_null(opener) else JsWindowHandle(opener)

    def environment(self) -> Environment:
        w = self.window
        return Environment(
            viewport_width=int(w.innerWidth),
            viewport_height=int(w.innerHeight),
            user_agent=str(w.navigator.userAgent),
            screen_x=int(w.screenX or 0),
            screen_y=int(w.screenY or 0),
        )

    def open_window(self, url: str, name: str, features: str) -> JsWindowHandle | None:
        handle = self.window.open(url, name, features)
        return None if _is_null(handle) else JsWindowHandle(handle)

    def navigate(self, url: str) -> None:
        try:
            self.window.location.assign(url)
        except Exception as e:
            raise NavigationRefused(str(e)) from e

    def reload(self) -> None:
        self.window.location.reload()

    def close(self) -> None:
        self.window.close()

    def listen(self, event: str, handler: Callable[[Any], None]) -> None:
        self.window.addEventListener(event, handler)


class WebStorage:
    """localStorage / sessionStorage behind the KeyValueStore protocol."""

    def __init__(self, storage: Any):
        self._storage = storage

    def get_item(self, key: str) -> str | None:
        value = self._storage.getItem(key)
        return None if _is_null(value) else str(value)

    def set_item(self, key: str, value: str) -> None:
        self._storage.setItem(key, value)

    def remove_item(self, key: str) -> None:
        self._storage.removeItem(key)

    def clear(self) -> None:
        self._storage.clear()
