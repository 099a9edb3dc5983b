"""Analytics query construction: fragments, filters and the execution gateway."""

from query.filters import FILTER_IGNORED, FilterSet, ParsedFilters, get_filter_query, parse_filters
from query.fragments import (
    get_date_query,
    get_event_data_columns_query,
    get_event_data_filter_query,
    get_json_field,
    get_timestamp_interval,
    to_uuid,
)
from query.gateway import QueryGateway

__all__ = [
    "FILTER_IGNORED",
    "FilterSet",
    "ParsedFilters",
    "QueryGateway",
    "get_date_query",
    "get_event_data_columns_query",
    "get_event_data_filter_query",
    "get_filter_query",
    "get_json_field",
    "get_timestamp_interval",
    "parse_filters",
    "to_uuid",
]
