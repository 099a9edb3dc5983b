from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, field_validator


class Ignored(Enum):
    FILTER = "filter-ignored"

    def __repr__(self) -> str:
        return "FILTER_IGNORED"


# Marks a filter as deliberately not applied, e.g. when the query groups by it.
FILTER_IGNORED = Ignored.FILTER

FilterValue = Optional[Union[Ignored, str]]

EQUALITY_KEYS = ("url", "os", "browser", "device", "country", "event_name")
PAGEVIEW_KEYS = ("domain", "url", "referrer", "query")
SESSION_KEYS = ("os", "browser", "device", "country")


class FilterSet(BaseModel):
    """Every filter key the analytics queries understand; unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    url: FilterValue = None
    os: FilterValue = None
    browser: FilterValue = None
    device: FilterValue = None
    country: FilterValue = None
    event_name: FilterValue = None
    referrer: FilterValue = None
    domain: FilterValue = None
    query: FilterValue = None
    event_url: FilterValue = None

    @field_validator("*", mode="before")
    @classmethod
    def bool_to_str(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        return value

    @classmethod
    def parse(cls, raw: Union["FilterSet", Mapping[str, Any], None] = None) -> "FilterSet":
        if isinstance(raw, cls):
            return raw
        return cls.model_validate(dict(raw or {}))

    def applied(self) -> Iterator[Tuple[str, str]]:
        for key in type(self).model_fields:
            value = getattr(self, key)
            if value is None or value is FILTER_IGNORED:
                continue
            yield key, value


@dataclass(frozen=True)
class ParsedFilters:
    pageview_filters: Dict[str, FilterValue]
    session_filters: Dict[str, FilterValue]
    event_filters: Dict[str, FilterValue]
    event: Dict[str, FilterValue]
    join_session: str
    filter_query: str


def get_filter_query(
    filters: Union[FilterSet, Mapping[str, Any], None] = None, params: Optional[List[Any]] = None
) -> str:
    """Build ``and ...`` predicates for ``filters``, appending bound values to ``params``.

    Each ``$N`` placeholder is numbered from the current length of ``params``,
    so the list must be the one that will be sent with the finished query.
    """
    filter_set = FilterSet.parse(filters)
    if params is None:
        params = []

    query: List[str] = []
    for key, value in filter_set.applied():
        if key in EQUALITY_KEYS:
            query.append(f"and {key}=${len(params) + 1}")
            params.append(unquote(value))
        elif key == "referrer":
            query.append(f"and referrer like ${len(params) + 1}")
            params.append(f"%{unquote(value)}%")
        elif key == "domain":
            query.append(f"and referrer not like ${len(params) + 1}")
            query.append("and referrer not like '/%'")
            params.append(f"%://{value}/%")
        elif key == "query":
            query.append("and url like '%?%'")

    return "\n".join(query)


def parse_filters(
    filters: Union[FilterSet, Mapping[str, Any], None] = None,
    params: Optional[List[Any]] = None,
    session_key: str = "session_id",
    table: str = "website_event",
) -> ParsedFilters:
    filter_set = FilterSet.parse(filters)
    if params is None:
        params = []

    session_filters = {key: getattr(filter_set, key) for key in SESSION_KEYS}
    join_session = ""
    # An ignored session filter still needs the join: the caller selects that column.
    if any(value is not None for value in session_filters.values()):
        join_session = f"inner join session on {table}.{session_key} = session.{session_key}"

    return ParsedFilters(
        pageview_filters={key: getattr(filter_set, key) for key in PAGEVIEW_KEYS},
        session_filters=session_filters,
        event_filters={"url": filter_set.event_url, "event_name": filter_set.event_name},
        event={"event_name": filter_set.event_name},
        join_session=join_session,
        filter_query=get_filter_query(filter_set, params),
    )
