from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

Rows = List[Dict[str, Any]]
PendingQuery = Tuple[str, Sequence[Any]]


class AdapterError(RuntimeError):
    pass


class UnsupportedDialect(AdapterError):
    """Raised while building SQL fragments for a dialect outside postgresql/mysql."""


class UnknownDatabase(AdapterError):
    """Raised at the execution boundary when DATABASE_URL names no known engine."""


class ExecutionClient(ABC):
    engine: str = "unknown"

    def __init__(self, database_url: str, source_config: Optional[Dict[str, Any]] = None):
        self.database_url = database_url
        self.source_config = source_config or {}

    @abstractmethod
    async def open(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def query_raw(self, sql: str, params: Sequence[Any]) -> Rows:
        raise NotImplementedError

    @abstractmethod
    async def transaction(self, queries: Sequence[PendingQuery]) -> List[Rows]:
        raise NotImplementedError

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False
