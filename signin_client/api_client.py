"""
Client for signin_api: trade the authorization code for an access token, then fetch the
normalized profile. No retries; httpx's default timeout applies.
"""
import logging
from typing import Any

import httpx

from signin_client.config import API_BASE_URL
from signin_client.errors import AuthError, AuthErrorKind, from_status

logger = logging.getLogger(__name__)

TOKEN_PATH = "/api/auth/linkedin/token"
PROFILE_PATH = "/api/auth/linkedin/profile"


def error_detail(r: httpx.Response) -> str:
    """error_description from signin_api's {"detail": {...}} body, if any."""
    try:
        body = r.json()
    except ValueError:
        return (r.text or "")[:200]
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return str(detail.get("details") or detail.get("error_description") or detail.get("error") or "")
    return str(detail or "")


class SignInApiClient:
    def __init__(self, base_url: str = API_BASE_URL):
        self.base_url = base_url.rstrip("/")

    def _check(self, r: httpx.Response, what: str) -> None:
        if 200 <= r.status_code < 300:
            return
        detail = error_detail(r)
        logger.warning("%s failed with HTTP %s: %s", what, r.status_code, detail)
        raise from_status(r.status_code, detail)

    def exchange_code(self, code: str) -> str:
        """POST the authorization code; returns the access token."""
        try:
            r = httpx.post(f"{self.base_url}{TOKEN_PATH}", json={"code": code})
        except httpx.TransportError as e:
            raise AuthError(AuthErrorKind.NETWORK_ERROR, f"Token exchange failed: {e}")
        self._check(r, "Token exchange")
        try:
            body = r.json()
        except ValueError:
            body = None
        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise AuthError(AuthErrorKind.OAUTH_ERROR, "Token response had no access_token")
        return access_token

    def fetch_profile(self, access_token: str) -> dict[str, Any]:
        """GET the normalized profile with the bearer token."""
        try:
            r = httpx.get(
                f"{self.base_url}{PROFILE_PATH}",
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
            )
        except httpx.TransportError as e:
            raise AuthError(AuthErrorKind.NETWORK_ERROR, f"Profile fetch failed: {e}")
        self._check(r, "Profile fetch")
        try:
            body = r.json()
        except ValueError:
            raise AuthError(AuthErrorKind.OAUTH_ERROR, "Profile response was not JSON")
        if not isinstance(body, dict):
            raise AuthError(AuthErrorKind.OAUTH_ERROR, "Profile response was not an object")
        return body
