from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import unquote, urlsplit

from adapters.base import AdapterError, ExecutionClient, PendingQuery, Rows

logger = logging.getLogger(__name__)


class MySQLClient(ExecutionClient):
    engine = "mysql"

    def __init__(self, database_url: str, source_config: Optional[Dict[str, Any]] = None):
        super().__init__(database_url, source_config=source_config)
        self._params: Optional[Dict[str, Any]] = None

    def _db_params(self) -> Dict[str, Any]:
        parts = urlsplit(self.database_url)
        host = self.source_config.get("host") or parts.hostname
        dbname = self.source_config.get("dbname") or parts.path.lstrip("/")
        user = self.source_config.get("user") or (unquote(parts.username) if parts.username else None)
        password = self.source_config.get("password") or (unquote(parts.password) if parts.password else "")
        port_raw = self.source_config.get("port") or parts.port or 3306
        if not host:
            raise ValueError("DATABASE_URL host is required")
        if not dbname:
            raise ValueError("DATABASE_URL database name is required")
        if not user:
            raise ValueError("DATABASE_URL user is required")
        return {
            "host": host,
            "port": int(port_raw),
            "database": dbname,
            "user": user,
            "password": password,
        }

    async def open(self) -> None:
        if self._params is None:
            self._params = self._db_params()
            logger.debug("MySQL client opened for %s:%s", self._params["host"], self._params["port"])

    async def close(self) -> None:
        if self._params is not None:
            self._params = None
            logger.debug("MySQL client closed")

    def _connect(self):
        if self._params is None:
            raise AdapterError("MySQLClient is not open")
        try:
            import pymysql  # type: ignore
            import pymysql.cursors  # type: ignore
        except ImportError as exc:
            raise ImportError(
                "No MySQL driver found. Install it with `python -m pip install pymysql`."
            ) from exc

        return pymysql.connect(cursorclass=pymysql.cursors.DictCursor, **self._params)

    def _run(self, queries: Sequence[PendingQuery], atomic: bool) -> List[Rows]:
        conn = self._connect()
        try:
            results: List[Rows] = []
            if atomic:
                conn.begin()
            with conn.cursor() as cur:
                for sql, params in queries:
                    cur.execute(sql, tuple(params))
                    results.append([dict(row) for row in cur.fetchall()])
            conn.commit()
            return results
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def query_raw(self, sql: str, params: Sequence[Any]) -> Rows:
        results = await asyncio.to_thread(self._run, [(sql, params)], False)
        return results[0]

    async def transaction(self, queries: Sequence[PendingQuery]) -> List[Rows]:
        return await asyncio.to_thread(self._run, list(queries), True)
