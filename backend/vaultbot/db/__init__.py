"""Database module for Vaultbot secret and session storage."""

from .connection import get_db_pool, init_db, close_db, run_migrations
from .secrets import SecretRepository
from .sessions import SessionRepository, SESSION_TIMEOUT
from .models import (
    RAW_SITE,
    SecretRecord,
    SecretSummary,
    Session,
    SessionData,
    SessionStep,
)

__all__ = [
    "get_db_pool",
    "init_db",
    "close_db",
    "run_migrations",
    "SecretRepository",
    "SessionRepository",
    "SESSION_TIMEOUT",
    "RAW_SITE",
    "SecretRecord",
    "SecretSummary",
    "Session",
    "SessionData",
    "SessionStep",
]
