"""
Application settings

Read once at start-up from the environment (a local .env file is honoured)
and handed to create_app. Nothing here is read again per request.
"""

import os
import logging
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEV_JWT_SECRET = "devsecret"


class Settings(BaseModel):
    database_url: str = Field("mongodb://localhost:27017", description="MongoDB connection string")
    database_name: str = Field("job_portal", description="Database holding all collections")
    jwt_secret: str = Field(DEV_JWT_SECRET, description="HMAC secret for bearer tokens")
    jwt_expires_days: int = Field(7, ge=1, description="Token lifetime in days")
    bcrypt_rounds: int = Field(12, ge=4, le=31, description="bcrypt work factor")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        secret = os.getenv("JWT_SECRET")
        if not secret:
            logger.warning("JWT_SECRET is not set, falling back to the development secret")
        origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        return cls(
            database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
            database_name=os.getenv("DATABASE_NAME", "job_portal"),
            jwt_secret=secret or DEV_JWT_SECRET,
            jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", 7)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 12)),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            port=int(os.getenv("PORT", 8000)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def configure_logging(level: str = "INFO"):
    """Safe to call more than once; basicConfig leaves an already configured root alone."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
