"""
Sign-in client configuration. The LinkedIn client id is public (it appears in the authorization URL);
the client secret lives only in signin_api.
"""
import os

# Our LinkedIn app's client_id; empty means the flow cannot start (configuration_missing)
LINKEDIN_CLIENT_ID = os.environ.get("LINKEDIN_CLIENT_ID", "")

# LinkedIn authorization endpoint (browser is sent here)
AUTHORIZATION_ENDPOINT = os.environ.get(
    "LINKEDIN_AUTHORIZATION_URL", "https://www.linkedin.com/oauth/v2/authorization"
)

# "Sign In with LinkedIn using OpenID Connect" scopes
DEFAULT_SCOPE = os.environ.get("LINKEDIN_SCOPE", "openid profile email")

# Route on the site that LinkedIn redirects back to; redirect_uri = page origin + this path
CALLBACK_PATH = "/auth/linkedin/callback"
HOME_PATH = "/"

# Base URL of signin_api (token exchange + profile fetch); empty = same origin as the page
API_BASE_URL = os.environ.get("SIGNIN_API_BASE_URL", "").rstrip("/")

# An auth attempt older than this is abandoned (seconds)
AUTH_TIMEOUT_SECONDS = 5 * 60

# Viewports at or below this width use the redirect strategy
MOBILE_MAX_WIDTH = 768

# Popup window
POPUP_NAME = "linkedin-auth"
POPUP_WIDTH = 600
POPUP_HEIGHT = 600
POPUP_POLL_SECONDS = 1.0

# Popup stays open this long after reporting an error to its opener
POPUP_ERROR_CLOSE_SECONDS = 3.0

# "Interrupted" notice auto-dismiss
NOTICE_DISMISS_SECONDS = 4.0

# Product analytics (Mixpanel-compatible ingestion API)
MIXPANEL_TOKEN = os.environ.get("MIXPANEL_TOKEN", "")
MIXPANEL_API_URL = os.environ.get("MIXPANEL_API_URL", "https://api-js.mixpanel.com").rstrip("/")
ANALYTICS_ENABLED = os.environ.get("ANALYTICS_ENABLED", "true").lower() == "true"
APP_ENVIRONMENT = os.environ.get("APP_ENVIRONMENT", "development")
APP_VERSION = "0.1.0"

# Retries offered after a failed attempt, per sign-in
MAX_RETRY_ATTEMPTS = 3
