"""
Audit log storage. SIGNIN_DATABASE_URL picks the database; the default is a local SQLite file.
Only audit rows are written here; tokens and profiles are never persisted.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signin_api.config import DATABASE_URL
from signin_api.models import Base

# One shared connection keeps a :memory: audit log alive across requests.
# Route handlers run in a threadpool, so SQLite connections are not pinned to a thread.
if DATABASE_URL.startswith("sqlite:///:memory:"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    connect_args = {"check_same_thread": False} if "sqlite" in DATABASE_URL else {}
    engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create the audit_log table if it is missing. Called from the app lifespan."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """Per-request session for writing and listing audit rows; closed when the request ends."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
