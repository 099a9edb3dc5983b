from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from adapters.base import AdapterError, UnsupportedDialect

POSTGRESQL = "postgresql"
MYSQL = "mysql"

# Quoted literals are matched first so a "$5" inside one is left alone.
_PLACEHOLDER_RE = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|\$[0-9]+")


class TimeUnit(str, Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


POSTGRESQL_DATE_FORMATS: Dict[TimeUnit, str] = {
    TimeUnit.MINUTE: "YYYY-MM-DD HH24:MI:00",
    TimeUnit.HOUR: "YYYY-MM-DD HH24:00:00",
    TimeUnit.DAY: "YYYY-MM-DD",
    TimeUnit.MONTH: "YYYY-MM-01",
    TimeUnit.YEAR: "YYYY-01-01",
}

MYSQL_DATE_FORMATS: Dict[TimeUnit, str] = {
    TimeUnit.MINUTE: "%Y-%m-%d %H:%i:00",
    TimeUnit.HOUR: "%Y-%m-%d %H:00:00",
    TimeUnit.DAY: "%Y-%m-%d",
    TimeUnit.MONTH: "%Y-%m-01",
    TimeUnit.YEAR: "%Y-01-01",
}


def _time_unit(unit: Any) -> TimeUnit:
    try:
        return TimeUnit(unit)
    except ValueError as exc:
        raise ValueError(f"Unsupported time unit: {unit}") from exc


def _zone(timezone: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {timezone}") from exc


def utc_offset(timezone: str, now: Optional[datetime] = None) -> str:
    """Current UTC offset of ``timezone`` formatted as ``+HH:MM``.

    The offset is taken at ``now`` (default: the moment of the call), so a
    query bucketing historical rows across a DST change uses one offset for
    all of them.
    """
    zone = _zone(timezone)
    moment = now.astimezone(zone) if now else datetime.now(zone)
    raw = moment.strftime("%z")
    return f"{raw[:3]}:{raw[3:5]}"


@dataclass(frozen=True)
class SQLDialect(ABC):
    engine: str
    native_placeholder: str
    date_formats: Dict[TimeUnit, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = [unit.value for unit in TimeUnit if unit not in self.date_formats]
        if missing:
            raise AdapterError(f"{self.engine} date formats missing units: {', '.join(missing)}")

    @abstractmethod
    def render_date_query(self, field_expr: str, unit: Any, timezone: Optional[str] = None) -> str:
        raise NotImplementedError

    @abstractmethod
    def render_timestamp_interval(self, field_expr: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def render_json_field(self, column: str, prop: str, as_number: bool = False) -> str:
        raise NotImplementedError

    def uuid_cast(self) -> str:
        return ""

    def quote_literal(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def native_sql(self, sql: str) -> str:
        return sql


@dataclass(frozen=True)
class PostgresDialect(SQLDialect):
    engine: str = POSTGRESQL
    native_placeholder: str = "$n"
    date_formats: Dict[TimeUnit, str] = field(default_factory=lambda: dict(POSTGRESQL_DATE_FORMATS))

    def render_date_query(self, field_expr: str, unit: Any, timezone: Optional[str] = None) -> str:
        grain = _time_unit(unit)
        fmt = self.date_formats[grain]
        if timezone:
            _zone(timezone)
            return f"to_char(date_trunc('{grain.value}', {field_expr} at time zone '{timezone}'), '{fmt}')"
        return f"to_char(date_trunc('{grain.value}', {field_expr}), '{fmt}')"

    def render_timestamp_interval(self, field_expr: str) -> str:
        return f"floor(extract(epoch from max({field_expr}) - min({field_expr})))"

    def render_json_field(self, column: str, prop: str, as_number: bool = False) -> str:
        accessor = f"{column} ->> '{prop}'"
        if as_number:
            accessor = f"CAST({accessor} AS DECIMAL)"
        return accessor

    def uuid_cast(self) -> str:
        return "::uuid"


@dataclass(frozen=True)
class MySQLDialect(SQLDialect):
    engine: str = MYSQL
    native_placeholder: str = "%s"
    date_formats: Dict[TimeUnit, str] = field(default_factory=lambda: dict(MYSQL_DATE_FORMATS))

    def render_date_query(self, field_expr: str, unit: Any, timezone: Optional[str] = None) -> str:
        fmt = self.date_formats[_time_unit(unit)]
        if timezone:
            tz = utc_offset(timezone)
            return f"date_format(convert_tz({field_expr},'+00:00','{tz}'), '{fmt}')"
        return f"date_format({field_expr}, '{fmt}')"

    def render_timestamp_interval(self, field_expr: str) -> str:
        return f"floor(unix_timestamp(max({field_expr})) - unix_timestamp(min({field_expr})))"

    def render_json_field(self, column: str, prop: str, as_number: bool = False) -> str:
        # Numeric comparison relies on MySQL's implicit coercion.
        return f'{column} ->> "$.{prop}"'

    def quote_literal(self, value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace("'", "''")
        return f"'{escaped}'"

    def native_sql(self, sql: str) -> str:
        # pymysql applies %-formatting whenever args are passed.
        return _PLACEHOLDER_RE.sub(self._native_marker, sql.replace("%", "%%"))

    def _native_marker(self, match: "re.Match[str]") -> str:
        token = match.group(0)
        return token if token[0] in "'\"" else self.native_placeholder


_DIALECTS = {
    POSTGRESQL: PostgresDialect(),
    MYSQL: MySQLDialect(),
}


def get_sql_dialect(db_engine: Optional[str]) -> SQLDialect:
    engine = (db_engine or "").strip().lower()
    if engine in {"postgres", "postgresql"}:
        return _DIALECTS[POSTGRESQL]
    if engine == "mysql":
        return _DIALECTS[MYSQL]
    raise UnsupportedDialect(f"Unsupported dialect: {db_engine or 'unknown'}")


def current_dialect(database_url: Optional[str] = None) -> SQLDialect:
    from adapters.factory import resolve_dialect
    from utils.env_loader import get_database_url

    url = database_url if database_url is not None else get_database_url(required=False)
    return get_sql_dialect(resolve_dialect(url))
