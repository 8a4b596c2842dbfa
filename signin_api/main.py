"""
Sign-in API: server-side half of "Sign in with LinkedIn".
POST /api/auth/linkedin/token, GET /api/auth/linkedin/profile, GET /audit. Port 8000.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signin_api.audit import router as audit_router
from signin_api.config import SITE_ORIGIN
from signin_api.database import init_db
from signin_api.profile import router as profile_router
from signin_api.token_endpoint import router as token_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create audit tables on startup."""
    init_db()
    yield


app = FastAPI(title="Sign-in API", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[SITE_ORIGIN],
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)
app.include_router(token_router, tags=["token"])
app.include_router(profile_router, tags=["profile"])
app.include_router(audit_router, tags=["audit"])


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "signin_api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "signin_api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
