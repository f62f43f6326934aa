import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

import auth
import jobs
import posts
import users
from config import Settings, configure_logging
from database import ensure_indexes, get_database
from errors import register_error_handlers
from security import CredentialStore, SessionIssuer

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    """Build the API around one settings object and one database handle."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    if db is None:
        db = get_database(settings)
    ensure_indexes(db)

    app = FastAPI(title="Job Portal API")
    app.state.settings = settings
    app.state.db = db
    app.state.credentials = CredentialStore(db, rounds=settings.bcrypt_rounds)
    app.state.sessions = SessionIssuer(settings.jwt_secret, timedelta(days=settings.jwt_expires_days))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(users.router, prefix="/api/users")
    app.include_router(jobs.router, prefix="/api/jobs")
    app.include_router(posts.router, prefix="/api/posts")

    @app.get("/")
    def read_root():
        return {"message": "Job Portal API is running"}

    @app.get("/api/health")
    def health():
        return {"message": "Server is running", "status": "OK"}

    return app


if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=settings.port)
