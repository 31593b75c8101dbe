"""MySQL access through a process-scoped aiomysql connection pool.

The pool is created once on application startup, closed on shutdown and handed
to route handlers through the ``get_database`` dependency.
"""

import asyncio
import logging
from typing import Any

import aiomysql
from fastapi import Request
from tenacity import retry
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from app.core.config import Settings

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class DatabaseError(Exception):
    """Raised when the pool is unavailable or a query fails."""


class Database:
    """Thin query executor over an aiomysql pool returning rows as dicts."""

    def __init__(self, config: Settings) -> None:
        self._config = config
        self._pool: aiomysql.Pool | None = None
        self._connect_lock = asyncio.Lock()

    async def connect(self) -> None:
        if self._pool is not None:
            return
        async with self._connect_lock:
            # Another caller may have finished while we waited
            if self._pool is not None:
                return
            self._pool = await self._create_pool()
        logger.info(
            "MySQL pool ready: %s@%s:%d/%s (maxsize=%d)",
            self._config.db_user,
            self._config.db_host,
            self._config.db_port,
            self._config.db_name,
            self._config.db_pool_size,
        )

    async def _create_pool(self) -> aiomysql.Pool:
        @retry(
            wait=wait_exponential(multiplier=1, min=1, max=8),
            stop=stop_after_attempt(max(1, self._config.db_connect_retries)),
            retry=retry_if_exception_type((aiomysql.OperationalError, OSError)),
            reraise=True,
        )  # type: ignore
        async def _attempt() -> aiomysql.Pool:
            return await aiomysql.create_pool(
                host=self._config.db_host,
                port=self._config.db_port,
                user=self._config.db_user,
                password=self._config.db_password,
                db=self._config.db_name,
                minsize=1,
                maxsize=self._config.db_pool_size,
                autocommit=True,
                charset="utf8mb4",
                cursorclass=aiomysql.DictCursor,
            )

        return await _attempt()

    async def close(self) -> None:
        if self._pool is None:
            return
        self._pool.close()
        await self._pool.wait_closed()
        self._pool = None
        logger.info("MySQL pool closed")

    async def fetch_all(self, query: str, params: tuple | list | None = None) -> list[Row]:
        """Run *query* with DB-API ``%s`` placeholders and return every row."""
        try:
            if self._pool is None:
                await self.connect()
            async with self._pool.acquire() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rows = await cur.fetchall()
        except aiomysql.MySQLError as e:
            logger.error("Query failed: %s", e, exc_info=True)
            raise DatabaseError(f"Query failed: {e}") from e
        except OSError as e:
            logger.error("Database connection error: %s", e, exc_info=True)
            raise DatabaseError(f"Database connection error: {e}") from e
        return list(rows)

    async def fetch_one(self, query: str, params: tuple | list | None = None) -> Row | None:
        rows = await self.fetch_all(query, params)
        return rows[0] if rows else None


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the pool handle created at startup."""
    return request.app.state.db
