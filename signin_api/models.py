"""
SQLAlchemy models for the sign-in API. Only the audit trail is persisted; tokens never are.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class AuditLog(Base):
    """One row per token exchange or profile fetch. No tokens, codes, or secrets stored."""
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    outcome: Mapped[str] = mapped_column(String(16), nullable=False)  # success | fail
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Status returned by LinkedIn, if the call got that far
    upstream_status: Mapped[int | None] = mapped_column(nullable=True)
    # LinkedIn member id (sub) once known
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
