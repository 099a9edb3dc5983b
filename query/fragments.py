"""Dialect-neutral SQL fragment builders.

Every builder takes an optional ``dialect`` strategy; when omitted the dialect
is resolved from ``DATABASE_URL`` on each call and ``UnsupportedDialect`` is
raised if it names neither postgresql nor mysql.

Column, property and aggregate names are interpolated into the SQL text, so
they must come from a fixed set of known keys, never from request input.
Values belong in the positional parameter list.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from adapters.sql_renderer import SQLDialect, current_dialect

NUMERIC_AGGREGATES = {"sum", "avg", "min", "max"}
AGGREGATE_FUNCTIONS = NUMERIC_AGGREGATES | {"count"}


def _dialect(dialect: Optional[SQLDialect]) -> SQLDialect:
    return dialect if dialect is not None else current_dialect()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def to_uuid(dialect: Optional[SQLDialect] = None) -> str:
    return _dialect(dialect).uuid_cast()


def get_date_query(
    field: str, unit: str, timezone: Optional[str] = None, dialect: Optional[SQLDialect] = None
) -> str:
    return _dialect(dialect).render_date_query(field, unit, timezone)


def get_timestamp_interval(field: str, dialect: Optional[SQLDialect] = None) -> str:
    return _dialect(dialect).render_timestamp_interval(field)


def get_json_field(
    column: str, prop: str, as_number: bool = False, dialect: Optional[SQLDialect] = None
) -> str:
    return _dialect(dialect).render_json_field(column, prop, as_number)


def get_event_data_columns_query(
    column: str, columns: Mapping[str, Optional[str]], dialect: Optional[SQLDialect] = None
) -> str:
    sql_dialect = _dialect(dialect)
    parts = []
    for key, fn in columns.items():
        if fn is None:
            continue
        fn = fn.lower()
        if fn not in AGGREGATE_FUNCTIONS:
            raise ValueError(f"Unsupported aggregate function: {fn}")
        accessor = sql_dialect.render_json_field(column, key, fn in NUMERIC_AGGREGATES)
        parts.append(f'{fn}({accessor}) as "{fn}({key})"')
    return ",\n".join(parts)


def _literal(value: Any, dialect: SQLDialect) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return str(value)
    return dialect.quote_literal(str(value))


def get_event_data_filter_query(
    column: str, filters: Mapping[str, Any], dialect: Optional[SQLDialect] = None
) -> str:
    sql_dialect = _dialect(dialect)
    parts = []
    for key, value in filters.items():
        if value is None:
            continue
        accessor = sql_dialect.render_json_field(column, key, _is_number(value))
        parts.append(f"{accessor} = {_literal(value, sql_dialect)}")
    return "\nand ".join(parts)
