"""
Profile fetch (GET /api/auth/linkedin/profile). Calls LinkedIn's OpenID Connect userinfo endpoint
with the caller's Bearer token and normalizes the claims into the site's user record shape.
"""
import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from signin_api.audit import EVENT_PROFILE_FETCH, OUTCOME_FAIL, get_client_ip, log_audit
from signin_api.config import LINKEDIN_USERINFO_URL, RATE_LIMIT_PROFILE_PER_MINUTE, UPSTREAM_TIMEOUT
from signin_api.database import get_db
from signin_api.rate_limit import enforce
from signin_api.token_endpoint import json_object, upstream_error_detail

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Extract Bearer token from Authorization header. Raises 401 if missing or not Bearer."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "invalid_request", "error_description": "Access token required"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def _location(locale) -> str | None:
    """userinfo locale is either {"country": "BR", "language": "pt"} or a plain string."""
    if isinstance(locale, dict):
        joined = f"{locale.get('country') or ''} {locale.get('language') or ''}".strip()
        return joined or None
    if isinstance(locale, str) and locale:
        return locale
    return None


def normalize_userinfo(userinfo: dict) -> dict:
    """Map OIDC userinfo claims to {id, name, email, headline, location, picture, publicProfileUrl}."""
    sub = userinfo.get("sub")
    name = userinfo.get("name")
    if not name:
        name = " ".join(p for p in (userinfo.get("given_name"), userinfo.get("family_name")) if p) or None
    profile = {
        "id": sub,
        "name": name,
        "email": userinfo.get("email"),
        "headline": userinfo.get("job_title") or userinfo.get("title"),
        "location": _location(userinfo.get("locale")),
        "picture": userinfo.get("picture"),
        "publicProfileUrl": userinfo.get("profile") or (f"https://linkedin.com/in/{sub}" if sub else None),
    }
    return {k: v for k, v in profile.items() if v is not None}


@router.get("/api/auth/linkedin/profile")
def profile(
    request: Request,
    access_token: Annotated[str, Depends(get_bearer_token)],
    db: Session = Depends(get_db),
):
    """Return the normalized LinkedIn profile for the Bearer token's member."""
    ip = get_client_ip(request)
    enforce(f"profile:{ip}", RATE_LIMIT_PROFILE_PER_MINUTE)

    try:
        r = httpx.get(
            LINKEDIN_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
            timeout=UPSTREAM_TIMEOUT,
        )
    except httpx.HTTPError as e:
        logger.warning("Profile fetch transport failure: %s", e)
        log_audit(db, EVENT_PROFILE_FETCH, outcome=OUTCOME_FAIL, ip=ip)
        raise HTTPException(
            status_code=502,
            detail={"error": "upstream_unreachable", "error_description": "Could not reach LinkedIn", "details": str(e)},
        )

    if r.status_code != 200:
        details = upstream_error_detail(r)
        logger.warning("LinkedIn userinfo returned %s: %s", r.status_code, details)
        log_audit(db, EVENT_PROFILE_FETCH, outcome=OUTCOME_FAIL, ip=ip, upstream_status=r.status_code)
        if r.status_code == 401:
            raise HTTPException(
                status_code=401,
                detail={"error": "invalid_token", "error_description": "LinkedIn rejected the access token"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        if r.status_code == 429:
            raise HTTPException(
                status_code=429,
                detail={"error": "rate_limited", "error_description": "LinkedIn rate limit reached"},
            )
        raise HTTPException(
            status_code=502,
            detail={
                "error": "profile_fetch_failed",
                "error_description": "Profile fetch failed",
                "details": f"LinkedIn API returned {r.status_code}: {details}",
                "status": r.status_code,
            },
        )

    userinfo = json_object(r)
    if userinfo is None:
        logger.warning("LinkedIn userinfo was not a JSON object: %s", (r.text or "")[:200])
        log_audit(db, EVENT_PROFILE_FETCH, outcome=OUTCOME_FAIL, ip=ip, upstream_status=r.status_code)
        raise HTTPException(
            status_code=502,
            detail={
                "error": "profile_fetch_failed",
                "error_description": "LinkedIn userinfo response was not a JSON object",
                "status": r.status_code,
            },
        )
    user = normalize_userinfo(userinfo)
    log_audit(db, EVENT_PROFILE_FETCH, ip=ip, upstream_status=r.status_code, subject=user.get("id"))
    return user
