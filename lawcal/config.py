"""Environment-driven settings for the calendar service."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Load .env from project root
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


# Default: local SQLite file, no env setup required.
DEFAULT_SQLITE_PATH = PROJECT_ROOT / ".data" / "dev.db"
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{DEFAULT_SQLITE_PATH}"

# Run Base.metadata.create_all on startup
AUTO_CREATE_SCHEMA = _flag("AUTO_CREATE_SCHEMA", "true")

# Pool settings only apply to server databases
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
DB_LOG_SLOW_QUERIES = _flag("DB_LOG_SLOW_QUERIES", "true")
DB_SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Identity used by the bootstrap endpoint and as the default booking owner
DEMO_LAWYER_EMAIL = "demo.lawyer@challenge.local"
DEMO_LAWYER_NAME = "Demo Lawyer"
