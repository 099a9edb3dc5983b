from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from adapters.base import ExecutionClient, UnknownDatabase
from adapters.mysql import MySQLClient
from adapters.postgres import PostgresClient
from adapters.sql_renderer import MYSQL, POSTGRESQL
from utils.env_loader import get_database_url


def resolve_dialect(database_url: Optional[str]) -> Optional[str]:
    """Map a connection URL to ``postgresql``/``mysql``, or ``None`` if neither."""
    if not database_url:
        return None
    scheme = urlsplit(database_url.strip()).scheme.lower()
    engine = scheme.split("+", 1)[0]
    if engine in {"postgres", "postgresql"}:
        return POSTGRESQL
    if engine == "mysql":
        return MYSQL
    return None


def create_client(
    database_url: Optional[str] = None, source_config: Optional[Dict[str, Any]] = None
) -> ExecutionClient:
    url = database_url or get_database_url()
    engine = resolve_dialect(url)
    if engine == POSTGRESQL:
        return PostgresClient(url, source_config=source_config)
    if engine == MYSQL:
        return MySQLClient(url, source_config=source_config)
    raise UnknownDatabase("Unknown database.")
