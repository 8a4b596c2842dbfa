"""
Authorization request helpers: CSRF state generation and the LinkedIn /authorization URL.
"""
import secrets
from urllib.parse import urlencode

from signin_client.config import CALLBACK_PATH


def generate_state() -> str:
    """Opaque value for CSRF protection; LinkedIn echoes it back to the callback."""
    return secrets.token_urlsafe(32)


def redirect_uri_for(origin: str) -> str:
    """Fixed callback URL registered with LinkedIn: page origin + callback route."""
    return origin.rstrip("/") + CALLBACK_PATH


def build_authorize_url(
    *,
    endpoint: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
) -> str:
    """Build LinkedIn's authorization URL for the authorization-code flow."""
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": scope,
        "state": state,
    }
    return f"{endpoint}?{urlencode(params)}"
