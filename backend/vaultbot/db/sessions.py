"""Session repository: per-user guided-save state with inactivity timeout."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..logging import get_logger
from .base import BaseRepository
from .models import Session, SessionData, SessionStep

logger = get_logger("database")

# Sessions untouched for longer than this are discarded on the next read
SESSION_TIMEOUT = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRepository(BaseRepository):
    """Repository for the sessions table (one row per user, last write wins)."""

    async def get(self, user_id: int, now: Optional[datetime] = None) -> Session:
        """
        Load the user's session.

        Returns a fresh idle session when there is no row, or when the row
        is older than SESSION_TIMEOUT (the stale row is deleted).
        """
        now = now or _utcnow()
        async with self._connection() as conn:
            row = await conn.fetchrow(
                "SELECT user_id, step, data, updated_at FROM sessions WHERE user_id = $1",
                user_id,
            )
            if not row:
                return Session(user_id=user_id)

            stale = now - row["updated_at"] > SESSION_TIMEOUT
            try:
                step = SessionStep(row["step"])
                data = SessionData.from_json(row["data"])
            except (ValueError, TypeError, json.JSONDecodeError):
                logger.warning(f"Discarding unreadable session for user {user_id}")
                stale = True

            if stale:
                await conn.execute("DELETE FROM sessions WHERE user_id = $1", user_id)
                logger.debug(f"Session for user {user_id} expired")
                return Session(user_id=user_id)

            return Session(
                user_id=user_id,
                step=step,
                data=data,
                updated_at=row["updated_at"],
            )

    async def set(self, session: Session, now: Optional[datetime] = None) -> Session:
        """Upsert the session, stamping updated_at."""
        session.updated_at = now or _utcnow()
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO sessions (user_id, step, data, updated_at)
                VALUES ($1, $2, $3::jsonb, $4)
                ON CONFLICT (user_id) DO UPDATE SET
                    step = EXCLUDED.step,
                    data = EXCLUDED.data,
                    updated_at = EXCLUDED.updated_at
                """,
                session.user_id,
                session.step.value,
                session.data.to_json(),
                session.updated_at,
            )
        return session

    async def clear(self, user_id: int) -> None:
        """Delete the user's session, if any."""
        async with self._connection() as conn:
            await conn.execute("DELETE FROM sessions WHERE user_id = $1", user_id)
