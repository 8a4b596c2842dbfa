"""
Sign-in API configuration. LinkedIn app credentials come from env; nothing secret in this file.
"""
import os

# LinkedIn app registration (client secret never leaves this service)
LINKEDIN_CLIENT_ID = os.environ.get("LINKEDIN_CLIENT_ID", "")
LINKEDIN_CLIENT_SECRET = os.environ.get("LINKEDIN_CLIENT_SECRET", "")

# LinkedIn endpoints (OpenID Connect product)
LINKEDIN_TOKEN_URL = os.environ.get("LINKEDIN_TOKEN_URL", "https://www.linkedin.com/oauth/v2/accessToken")
LINKEDIN_USERINFO_URL = os.environ.get("LINKEDIN_USERINFO_URL", "https://api.linkedin.com/v2/userinfo")

# Public site; the callback route lives there, not on this service
SITE_ORIGIN = os.environ.get("SITE_ORIGIN", "http://127.0.0.1:5173").rstrip("/")
CALLBACK_PATH = "/auth/linkedin/callback"

# Must match the redirect_uri the browser sent to /authorization exactly
REDIRECT_URI = os.environ.get("LINKEDIN_REDIRECT_URI", f"{SITE_ORIGIN}{CALLBACK_PATH}")

# Timeout (seconds) for calls to LinkedIn
UPSTREAM_TIMEOUT = float(os.environ.get("LINKEDIN_TIMEOUT", "10"))

# SQLite audit trail
DATABASE_URL = os.environ.get("SIGNIN_DATABASE_URL", "sqlite:///./signin_api.db")

# Rate limiting: per-IP, per minute
RATE_LIMIT_TOKEN_PER_MINUTE = int(os.environ.get("SIGNIN_RATE_LIMIT_TOKEN_PER_MINUTE", "30"))
RATE_LIMIT_PROFILE_PER_MINUTE = int(os.environ.get("SIGNIN_RATE_LIMIT_PROFILE_PER_MINUTE", "60"))
