"""
Token exchange (POST /api/auth/linkedin/token). The browser hands over the authorization code;
this service adds the client secret and trades the code for an access token at LinkedIn.
"""
import logging

import httpx
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from signin_api.audit import EVENT_TOKEN_EXCHANGE, OUTCOME_FAIL, get_client_ip, log_audit
from signin_api.config import (
    LINKEDIN_CLIENT_ID,
    LINKEDIN_CLIENT_SECRET,
    LINKEDIN_TOKEN_URL,
    RATE_LIMIT_TOKEN_PER_MINUTE,
    REDIRECT_URI,
    UPSTREAM_TIMEOUT,
)
from signin_api.database import get_db
from signin_api.rate_limit import enforce

logger = logging.getLogger(__name__)
router = APIRouter()


def json_object(r: httpx.Response) -> dict | None:
    """The response body as a JSON object, or None when it is not one."""
    try:
        body = r.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def upstream_error_detail(r: httpx.Response) -> str:
    """LinkedIn's error_description/error if JSON, else a slice of the body."""
    if r.headers.get("content-type", "").startswith("application/json"):
        err = json_object(r)
        if err is not None:
            return str(err.get("error_description") or err.get("error") or r.status_code)
    return (r.text or "")[:200]


@router.post("/api/auth/linkedin/token")
def token(
    request: Request,
    code: str | None = Body(None, embed=True),
    db: Session = Depends(get_db),
):
    """
    Exchange an authorization code for an access token. Returns {"access_token": ...} only;
    refresh tokens and id tokens are not passed to the browser.
    """
    ip = get_client_ip(request)
    enforce(f"token:{ip}", RATE_LIMIT_TOKEN_PER_MINUTE)

    if not code:
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_request", "error_description": "Authorization code required"},
        )
    if not LINKEDIN_CLIENT_ID or not LINKEDIN_CLIENT_SECRET:
        missing = "CLIENT_ID" if not LINKEDIN_CLIENT_ID else "CLIENT_SECRET"
        logger.error("LinkedIn %s not configured", missing)
        raise HTTPException(
            status_code=500,
            detail={"error": "server_error", "error_description": f"LinkedIn {missing} not configured"},
        )

    logger.info("Token exchange requested (code length %d)", len(code))
    try:
        r = httpx.post(
            LINKEDIN_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": LINKEDIN_CLIENT_ID,
                "client_secret": LINKEDIN_CLIENT_SECRET,
                "redirect_uri": REDIRECT_URI,
            },
            headers={"Accept": "application/json"},
            timeout=UPSTREAM_TIMEOUT,
        )
    except httpx.HTTPError as e:
        logger.warning("Token exchange transport failure: %s", e)
        log_audit(db, EVENT_TOKEN_EXCHANGE, outcome=OUTCOME_FAIL, ip=ip)
        raise HTTPException(
            status_code=502,
            detail={"error": "upstream_unreachable", "error_description": "Could not reach LinkedIn", "details": str(e)},
        )

    if r.status_code != 200:
        details = upstream_error_detail(r)
        logger.warning("LinkedIn token endpoint returned %s: %s", r.status_code, details)
        log_audit(db, EVENT_TOKEN_EXCHANGE, outcome=OUTCOME_FAIL, ip=ip, upstream_status=r.status_code)
        if r.status_code == 429:
            raise HTTPException(
                status_code=429,
                detail={"error": "rate_limited", "error_description": "LinkedIn rate limit reached"},
            )
        raise HTTPException(
            status_code=502,
            detail={
                "error": "token_exchange_failed",
                "error_description": "Token exchange failed",
                "details": f"LinkedIn API returned {r.status_code}: {details}",
                "status": r.status_code,
            },
        )

    body = json_object(r)
    access_token = body.get("access_token") if body is not None else None
    if not access_token:
        logger.warning("LinkedIn token response unusable: %s", (r.text or "")[:200])
        log_audit(db, EVENT_TOKEN_EXCHANGE, outcome=OUTCOME_FAIL, ip=ip, upstream_status=r.status_code)
        raise HTTPException(
            status_code=502,
            detail={"error": "token_exchange_failed", "error_description": "LinkedIn response had no access_token"},
        )

    log_audit(db, EVENT_TOKEN_EXCHANGE, ip=ip, upstream_status=r.status_code)
    return {"access_token": access_token}
