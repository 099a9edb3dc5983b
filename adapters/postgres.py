from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from adapters.base import AdapterError, ExecutionClient, PendingQuery, Rows

logger = logging.getLogger(__name__)


def _dsn(database_url: str) -> str:
    scheme, sep, rest = database_url.partition("://")
    if not sep:
        raise ValueError(f"Invalid DATABASE_URL: {database_url}")
    # asyncpg only understands the bare postgres schemes.
    return f"postgresql://{rest}" if "+" in scheme or scheme == "postgres" else database_url


class PostgresClient(ExecutionClient):
    engine = "postgresql"

    def __init__(self, database_url: str, source_config: Optional[Dict[str, Any]] = None):
        super().__init__(database_url, source_config=source_config)
        self._pool = None

    def _pool_params(self) -> Dict[str, Any]:
        return {
            "dsn": _dsn(self.database_url),
            "min_size": int(self.source_config.get("min_size", 1)),
            "max_size": int(self.source_config.get("max_size", 10)),
            "command_timeout": self.source_config.get("command_timeout"),
        }

    async def open(self) -> None:
        if self._pool is not None:
            return
        try:
            import asyncpg  # type: ignore
        except ImportError as exc:
            raise ImportError(
                "No PostgreSQL driver found. Install it with `python -m pip install asyncpg`."
            ) from exc

        self._pool = await asyncpg.create_pool(**self._pool_params())
        logger.debug("Postgres pool opened")

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.debug("Postgres pool closed")

    def _require_pool(self):
        if self._pool is None:
            raise AdapterError("PostgresClient is not open")
        return self._pool

    async def query_raw(self, sql: str, params: Sequence[Any]) -> Rows:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            records = await conn.fetch(sql, *params)
        return [dict(record) for record in records]

    async def transaction(self, queries: Sequence[PendingQuery]) -> List[Rows]:
        pool = self._require_pool()
        results: List[Rows] = []
        async with pool.acquire() as conn:
            async with conn.transaction():
                for sql, params in queries:
                    records = await conn.fetch(sql, *params)
                    results.append([dict(record) for record in records])
        return results
