"""Secret repository: the encrypted record store."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import asyncpg

from ..vault.expiry import current_date
from .base import BaseRepository
from .models import SecretRecord, SecretSummary

SUMMARY_COLUMNS = "id, name, site, expires_at"


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SecretRepository(BaseRepository):
    """Repository for secret CRUD and read-only queries.

    List and search return SecretSummary (plaintext columns only); the
    encrypted columns are only read by get().
    """

    @staticmethod
    def _row_to_record(row: asyncpg.Record) -> SecretRecord:
        """Convert a database row to a SecretRecord."""
        return SecretRecord(
            id=row["id"],
            name=row["name"],
            site=row["site"],
            account=row["account"],
            password=row["password"],
            extra=row["extra"],
            expires_at=row["expires_at"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_summary(row: asyncpg.Record) -> SecretSummary:
        return SecretSummary(
            id=row["id"],
            name=row["name"],
            site=row["site"],
            expires_at=row["expires_at"],
        )

    # --- CRUD ---

    async def insert(
        self,
        name: str,
        site: str,
        account: str,
        password: str,
        extra: Optional[str] = None,
        expires_at: Optional[date] = None,
    ) -> SecretRecord:
        """Insert a complete record. Sensitive values must already be encrypted."""
        async with self._connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO secrets (name, site, account, password, extra, expires_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                """,
                name,
                site,
                account,
                password,
                extra,
                expires_at,
            )
            return self._row_to_record(row)

    async def get(self, secret_id: int) -> Optional[SecretRecord]:
        """Get a full record by ID."""
        async with self._connection() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM secrets WHERE id = $1",
                secret_id,
            )
            return self._row_to_record(row) if row else None

    async def delete(self, secret_id: int) -> bool:
        """Delete a record. Returns True if a row was removed."""
        async with self._connection() as conn:
            result = await conn.execute(
                "DELETE FROM secrets WHERE id = $1",
                secret_id,
            )
            return result == "DELETE 1"

    async def update_expiry(self, secret_id: int, expires_at: Optional[date]) -> bool:
        """Set or clear the expiry date. Returns True if the record exists."""
        async with self._connection() as conn:
            result = await conn.execute(
                "UPDATE secrets SET expires_at = $2 WHERE id = $1",
                secret_id,
                expires_at,
            )
            return result == "UPDATE 1"

    # --- Queries ---

    async def search(self, term: str, limit: int = 5) -> list[SecretSummary]:
        """Case-insensitive substring match on name or site, newest first."""
        pattern = f"%{_escape_like(term)}%"
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM secrets
                WHERE name ILIKE $1 OR site ILIKE $1
                ORDER BY created_at DESC, id DESC
                LIMIT $2
                """,
                pattern,
                limit,
            )
            return [self._row_to_summary(row) for row in rows]

    async def list_all(self) -> list[SecretSummary]:
        """All records, newest first."""
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM secrets
                ORDER BY created_at DESC, id DESC
                """
            )
            return [self._row_to_summary(row) for row in rows]

    async def list_expiring_within(
        self,
        days: int,
        today: Optional[date] = None,
    ) -> list[SecretSummary]:
        """Records expiring on or before today + days (overdue included), soonest first."""
        cutoff = (today or current_date()) + timedelta(days=days)
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM secrets
                WHERE expires_at IS NOT NULL AND expires_at <= $1
                ORDER BY expires_at ASC, id ASC
                """,
                cutoff,
            )
            return [self._row_to_summary(row) for row in rows]
