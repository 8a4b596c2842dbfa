"""
State store for the sign-in flow.

Two key-value stores back it, mirroring the browser:
- persistent (localStorage): the authenticated user record, survives reloads
- ephemeral (sessionStorage): in-flight OAuth markers (CSRF state, in-progress timestamp,
  navigation flag, return URL), scoped to one tab

AuthStateStore is the only place that knows the key names and value formats.
"""
import json
import logging
import math
import time
from typing import Callable, Protocol

from signin_client.config import AUTH_TIMEOUT_SECONDS
from signin_client.models import LinkedInUser, validate_user_data

logger = logging.getLogger(__name__)

USER_KEY = "linkedin_user"
STATE_KEY = "linkedin_oauth_state"
IN_PROGRESS_KEY = "auth_in_progress"
NAVIGATION_FLAG_KEY = "navigation_during_auth"
RETURN_URL_KEY = "linkedin_auth_return_url"

TRANSACTION_KEYS = (STATE_KEY, IN_PROGRESS_KEY, NAVIGATION_FLAG_KEY, RETURN_URL_KEY)


def safe_return_path(path: str) -> str:
    """Only site-relative paths are followed after sign-in; anything else becomes "/"."""
    if isinstance(path, str) and path.startswith("/") and not path.startswith("//") and "\\" not in path:
        return path
    return "/"


class KeyValueStore(Protocol):
    """The Web Storage API shape."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    """Dict-backed store. Also the fallback when real storage is unavailable."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class FallbackStore:
    """
    Wraps a primary store that may refuse to work (private browsing, quota exceeded, storage
    disabled). Writes are mirrored in memory; when the primary raises, the operation is served
    from the mirror and storage_type switches to "memory".
    """

    def __init__(self, primary: KeyValueStore | None):
        self._primary = primary
        self._mirror = MemoryStore()
        self.storage_type = "primary" if primary is not None else "memory"

    @property
    def persistent(self) -> bool:
        return self.storage_type != "memory"

    def _degrade(self, op: str, exc: Exception) -> None:
        if self.storage_type != "memory":
            logger.warning("Storage %s failed, falling back to memory: %s", op, exc)
        self.storage_type = "memory"

    def get_item(self, key: str) -> str | None:
        if self._primary is not None and self.storage_type == "primary":
            try:
                return self._primary.get_item(key)
            except Exception as exc:
                self._degrade("get_item", exc)
        return self._mirror.get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self._mirror.set_item(key, value)
        if self._primary is not None and self.storage_type == "primary":
            try:
                self._primary.set_item(key, value)
            except Exception as exc:
                self._degrade("set_item", exc)

    def remove_item(self, key: str) -> None:
        self._mirror.remove_item(key)
        if self._primary is not None and self.storage_type == "primary":
            try:
                self._primary.remove_item(key)
            except Exception as exc:
                self._degrade("remove_item", exc)

    def clear(self) -> None:
        self._mirror.clear()
        if self._primary is not None and self.storage_type == "primary":
            try:
                self._primary.clear()
            except Exception as exc:
                self._degrade("clear", exc)


class AuthStateStore:
    """Typed access to every value the sign-in flow keeps in browser storage."""

    def __init__(
        self,
        persistent: KeyValueStore,
        ephemeral: KeyValueStore,
        clock: Callable[[], float] = time.time,
        auth_timeout: float = AUTH_TIMEOUT_SECONDS,
    ):
        self.persistent = persistent
        self.ephemeral = ephemeral
        self._clock = clock
        self.auth_timeout = auth_timeout

    # --- CSRF state token ---

    def save_state(self, token: str) -> None:
        self.ephemeral.set_item(STATE_KEY, token)

    def peek_state(self) -> str | None:
        return self.ephemeral.get_item(STATE_KEY)

    def pop_state(self) -> str | None:
        """Read and delete: a state token is good for one callback only."""
        token = self.ephemeral.get_item(STATE_KEY)
        self.ephemeral.remove_item(STATE_KEY)
        return token

    def clear_state(self) -> None:
        self.ephemeral.remove_item(STATE_KEY)

    # --- auth-in-progress marker ---

    def mark_in_progress(self) -> float:
        started = self._clock()
        self.ephemeral.set_item(IN_PROGRESS_KEY, repr(started))
        return started

    def in_progress_started_at(self) -> float | None:
        raw = self.ephemeral.get_item(IN_PROGRESS_KEY)
        if raw is None:
            return None
        try:
            started = float(raw)
        except ValueError:
            started = None
        if started is None or not math.isfinite(started):
            logger.debug("Unparsable auth_in_progress marker: %r", raw)
            return None
        return started

    def has_marker(self) -> bool:
        return self.ephemeral.get_item(IN_PROGRESS_KEY) is not None

    def is_stale(self) -> bool:
        """A marker exists but is older than the timeout (or unreadable)."""
        if not self.has_marker():
            return False
        started = self.in_progress_started_at()
        return started is None or self._clock() - started > self.auth_timeout

    def is_in_progress(self) -> bool:
        """A live, non-expired attempt exists."""
        started = self.in_progress_started_at()
        return started is not None and self._clock() - started <= self.auth_timeout

    def clear_in_progress(self) -> None:
        self.ephemeral.remove_item(IN_PROGRESS_KEY)

    # --- navigation-during-auth flag ---

    def set_navigation_flag(self) -> None:
        self.ephemeral.set_item(NAVIGATION_FLAG_KEY, "true")

    def navigation_flag_set(self) -> bool:
        return self.ephemeral.get_item(NAVIGATION_FLAG_KEY) == "true"

    def clear_navigation_flag(self) -> None:
        self.ephemeral.remove_item(NAVIGATION_FLAG_KEY)

    # --- return URL ---

    def save_return_url(self, path: str) -> None:
        self.ephemeral.set_item(RETURN_URL_KEY, safe_return_path(path))

    def pop_return_url(self) -> str | None:
        url = self.ephemeral.get_item(RETURN_URL_KEY)
        self.ephemeral.remove_item(RETURN_URL_KEY)
        return None if url is None else safe_return_path(url)

    # --- authenticated user record ---

    def save_user(self, user: LinkedInUser) -> None:
        self.persistent.set_item(USER_KEY, json.dumps(user.to_dict()))

    def load_user(self) -> LinkedInUser | None:
        """Stored record if it parses and validates; a corrupt or incomplete one is purged."""
        raw = self.persistent.get_item(USER_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored user record is not valid JSON; clearing it")
            self.clear_user()
            return None
        user = validate_user_data(data)
        if user is None:
            logger.warning("Stored user record is incomplete; clearing it")
            self.clear_user()
        return user

    def clear_user(self) -> None:
        self.persistent.remove_item(USER_KEY)

    def clear_transaction(self) -> None:
        """Drop every in-flight OAuth marker (state, in-progress, navigation flag, return URL)."""
        for key in TRANSACTION_KEYS:
            self.ephemeral.remove_item(key)
