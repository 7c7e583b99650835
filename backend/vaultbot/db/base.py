"""Shared connection handling for repositories."""

from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

from ..errors import StoreError
from .connection import get_connection

# Driver-level failures that become StoreError
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class BaseRepository:
    """Acquires connections from an explicit pool, or the global one."""

    def __init__(self, pool: Optional[asyncpg.Pool] = None):
        self._pool = pool

    @asynccontextmanager
    async def _connection(self):
        try:
            if self._pool is not None:
                async with self._pool.acquire() as conn:
                    yield conn
            else:
                async with get_connection() as conn:
                    yield conn
        except DRIVER_ERRORS as e:
            raise StoreError(f"{type(e).__name__}: {e}") from e
