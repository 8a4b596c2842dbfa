"""
Audit trail for LinkedIn calls made on behalf of the site. Outcomes and upstream status only;
never access tokens, authorization codes, or the client secret.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from signin_api.database import get_db
from signin_api.models import AuditLog

EVENT_TOKEN_EXCHANGE = "token_exchange"
EVENT_PROFILE_FETCH = "profile_fetch"

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"

MAX_AUDIT_ROWS = 500


def get_client_ip(request: Request | None) -> str | None:
    """Client IP if available. Forwarding headers are not trusted."""
    if request is None or request.client is None:
        return None
    return getattr(request.client, "host", None)


def log_audit(
    db: Session,
    event_type: str,
    *,
    outcome: str = OUTCOME_SUCCESS,
    ip: str | None = None,
    upstream_status: int | None = None,
    subject: str | None = None,
) -> None:
    """Append one audit record."""
    db.add(
        AuditLog(
            event_type=event_type,
            outcome=outcome,
            ip=ip,
            upstream_status=upstream_status,
            subject=subject,
        )
    )
    db.commit()


router = APIRouter(tags=["audit"])


@router.get("/audit")
def list_audit_logs(
    limit: int = 100,
    event_type: str | None = None,
    outcome: str | None = None,
    db: Session = Depends(get_db),
):
    """Recent LinkedIn calls, most recent first."""
    q = db.query(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    if event_type:
        q = q.filter(AuditLog.event_type == event_type)
    if outcome:
        q = q.filter(AuditLog.outcome == outcome)
    rows = q.limit(min(max(1, limit), MAX_AUDIT_ROWS)).all()
    return [
        {
            "created_at": r.created_at.isoformat() if r.created_at else None,
            "event_type": r.event_type,
            "outcome": r.outcome,
            "ip": r.ip,
            "upstream_status": r.upstream_status,
            "subject": r.subject,
        }
        for r in rows
    ]
