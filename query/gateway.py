from __future__ import annotations

import logging
import time
from typing import Any, List, Optional, Sequence

from adapters.base import ExecutionClient, PendingQuery, Rows, UnknownDatabase
from adapters.factory import resolve_dialect
from adapters.sql_renderer import SQLDialect, get_sql_dialect
from utils.env_loader import get_database_url, query_logging_enabled

logger = logging.getLogger(__name__)


class QueryGateway:
    """Send ``$N``-parameterised SQL to the execution client in its native syntax.

    The gateway keeps no state between calls; concurrent ``execute`` calls
    only share the client, which owns pooling, timeouts and cancellation.
    """

    def __init__(
        self,
        client: ExecutionClient,
        database_url: Optional[str] = None,
        log_queries: Optional[bool] = None,
    ):
        self.client = client
        self.database_url = database_url
        self.log_queries = query_logging_enabled() if log_queries is None else log_queries

    def _dialect(self) -> SQLDialect:
        url = self.database_url if self.database_url is not None else get_database_url(required=False)
        engine = resolve_dialect(url)
        if engine is None:
            raise UnknownDatabase("Unknown database.")
        return get_sql_dialect(engine)

    def _log(self, params: Sequence[Any], sql: str, started: float) -> None:
        if self.log_queries:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug("%s -> %s %.0fms", list(params), sql, elapsed_ms)

    def uuid_cast(self) -> str:
        return self._dialect().uuid_cast()

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> Rows:
        native = self._dialect().native_sql(sql)
        started = time.perf_counter()
        rows = await self.client.query_raw(native, list(params))
        self._log(params, native, started)
        return rows

    async def transaction(self, queries: Sequence[PendingQuery]) -> List[Rows]:
        dialect = self._dialect()
        pending = [(dialect.native_sql(sql), list(params)) for sql, params in queries]
        started = time.perf_counter()
        results = await self.client.transaction(pending)
        for sql, params in pending:
            self._log(params, sql, started)
        return results
