"""
Popup vs. redirect: small screens and mobile browsers get a full-page redirect, since popups
there either open as a new tab or get blocked.
"""
import re
from dataclasses import dataclass
from enum import Enum

from signin_client.config import MOBILE_MAX_WIDTH, POPUP_HEIGHT, POPUP_WIDTH

MOBILE_UA = re.compile(r"iPhone|iPad|iPod|Android|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)


class Strategy(str, Enum):
    POPUP = "popup"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class Environment:
    """Snapshot of what the page knows about the device."""
    viewport_width: int
    viewport_height: int
    user_agent: str = ""
    screen_x: int = 0
    screen_y: int = 0


def is_mobile(env: Environment) -> bool:
    return env.viewport_width <= MOBILE_MAX_WIDTH or bool(MOBILE_UA.search(env.user_agent))


def select_strategy(env: Environment) -> Strategy:
    return Strategy.REDIRECT if is_mobile(env) else Strategy.POPUP


def popup_features(env: Environment, width: int = POPUP_WIDTH, height: int = POPUP_HEIGHT) -> str:
    """window.open feature string for a login dialog centred over the viewport."""
    left = env.screen_x + max(0, (env.viewport_width - width) // 2)
    top = env.screen_y + max(0, (env.viewport_height - height) // 2)
    return f"width={width},height={height},left={left},top={top},scrollbars=yes,resizable=yes"
