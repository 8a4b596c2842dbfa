"""
Product analytics over Mixpanel's HTTP ingestion API. Best-effort: never raises, never blocks
the sign-in flow on a failure.
"""
import base64
import json
import logging
import time
import uuid
from typing import Any

import httpx

from signin_client.config import (
    ANALYTICS_ENABLED,
    APP_ENVIRONMENT,
    APP_VERSION,
    MIXPANEL_API_URL,
    MIXPANEL_TOKEN,
)

logger = logging.getLogger(__name__)

# Sign-in events
OAUTH_INITIATED = "LinkedIn OAuth Initiated"
USER_AUTHENTICATED = "User Authenticated"
AUTHENTICATION_ERROR = "Authentication Error"
AUTH_MODAL_SHOWN = "Auth Modal Shown"
AUTH_MODAL_DISMISSED = "Auth Modal Dismissed"
USER_SIGNED_OUT = "User Signed Out"

TIMEOUT = 5.0


class Analytics:
    def __init__(
        self,
        token: str = MIXPANEL_TOKEN,
        enabled: bool = ANALYTICS_ENABLED,
        api_url: str = MIXPANEL_API_URL,
        environment: str = APP_ENVIRONMENT,
    ):
        self.token = token
        self.enabled = enabled and bool(token)
        self.api_url = api_url.rstrip("/")
        self.environment = environment
        self.distinct_id = f"anon-{uuid.uuid4().hex}"
        if enabled and not token:
            logger.info("Analytics disabled: no MIXPANEL_TOKEN")

    def _send(self, path: str, payload: list[dict[str, Any]]) -> bool:
        if not self.enabled:
            return False
        data = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
        try:
            r = httpx.post(f"{self.api_url}{path}", data={"data": data}, timeout=TIMEOUT)
        except httpx.HTTPError as e:
            logger.warning("Analytics %s failed: %s", path, e)
            return False
        if r.status_code != 200:
            logger.warning("Analytics %s returned %s", path, r.status_code)
            return False
        return True

    def track(self, event: str, properties: dict[str, Any] | None = None) -> bool:
        props = {
            "token": self.token,
            "distinct_id": self.distinct_id,
            "time": int(time.time()),
            "environment": self.environment,
            "app_version": APP_VERSION,
        }
        props.update(properties or {})
        logger.debug("track %s", event)
        return self._send("/track", [{"event": event, "properties": props}])

    def identify(self, distinct_id: str) -> None:
        self.distinct_id = distinct_id

    def set_user_properties(self, properties: dict[str, Any]) -> bool:
        return self._send(
            "/engage",
            [{"$token": self.token, "$distinct_id": self.distinct_id, "$set": dict(properties)}],
        )
