from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from psycopg import AsyncCursor
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .config import settings

pool = AsyncConnectionPool(
    conninfo=str(settings.database_url),
    min_size=1,
    max_size=settings.database_pool_max_size,
    open=False,
)


@asynccontextmanager
async def get_conn() -> AsyncIterator[AsyncCursor]:
    """Yield a dict-row cursor on a pooled connection."""
    async with pool.connection() as conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            yield cur
