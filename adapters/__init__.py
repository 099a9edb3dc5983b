"""Dialect strategies and execution clients for the postgresql and mysql families."""

from adapters.base import AdapterError, UnknownDatabase, UnsupportedDialect
from adapters.factory import create_client, resolve_dialect
from adapters.sql_renderer import TimeUnit, current_dialect, get_sql_dialect

__all__ = [
    "AdapterError",
    "TimeUnit",
    "UnknownDatabase",
    "UnsupportedDialect",
    "create_client",
    "current_dialect",
    "get_sql_dialect",
    "resolve_dialect",
]
