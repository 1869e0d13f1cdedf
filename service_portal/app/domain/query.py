"""
List query parsing and the local filter/sort/paginate pipeline.

Live collections that the ERP did not page, and every fallback collection, go
through :func:`list_page`; collections the ERP paged itself go through
:func:`server_page`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from shared.errors import ValidationError

from .models import Pagination
from .normalizer import RawCollection


@dataclass(frozen=True)
class FilterSpec:
    """Query parameter ``param`` filters on record attribute ``attribute``."""

    param: str
    attribute: str
    codes: Mapping[str, str]


@dataclass(frozen=True)
class ListQuery:
    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    filters: Tuple[Tuple[str, str], ...] = ()
    sort_by: Optional[str] = None
    descending: bool = False
    params: Mapping[str, str] = field(default_factory=dict)


def parse_positive_int(value: Optional[str], name: str, default: int, maximum: Optional[int] = None) -> int:
    if value is None or not value.strip():
        return default
    try:
        number = int(value.strip())
    except ValueError:
        raise ValidationError(f"{name} must be a positive integer", field=name)
    if number < 1:
        raise ValidationError(f"{name} must be a positive integer", field=name)
    if maximum is not None and number > maximum:
        raise ValidationError(f"{name} must not exceed {maximum}", field=name)
    return number


def parse_flag(value: Optional[str], name: str) -> bool:
    if value is None or not value.strip():
        return False
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"{name} must be true or false", field=name)


def build_query(resource, params: Mapping[str, Optional[str]]) -> ListQuery:
    """Validate raw query parameters against a resource's listing rules."""
    present = {key: value.strip() for key, value in params.items() if value is not None and value.strip()}

    page = parse_positive_int(present.get("page"), "page", 1)
    limit = parse_positive_int(
        present.get(resource.limit_param), resource.limit_param, resource.default_limit, resource.max_limit
    )

    filters = []
    for spec in resource.filters:
        value = present.get(spec.param)
        if value is None or value.lower() == "all":
            continue
        canonical = spec.codes.get(value.lower())
        if canonical is None:
            raise ValidationError(f"Unknown {spec.param} value: {value}", field=spec.param)
        filters.append((spec.attribute, canonical))

    sort_by = None
    sort_param = present.get("sortBy")
    if sort_param is not None:
        sort_by = resource.sort_keys.get(sort_param)
        if sort_by is None:
            raise ValidationError(f"Cannot sort by {sort_param}", field="sortBy")

    sort_order = present.get("sortOrder", "asc").lower()
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sortOrder must be asc or desc", field="sortOrder")

    return ListQuery(
        page=page,
        limit=limit,
        search=present.get(resource.search_param),
        filters=tuple(filters),
        sort_by=sort_by,
        descending=sort_order == "desc",
        params=present,
    )


def _matches_search(record: Any, needle: str, fields: Sequence[str]) -> bool:
    needle = needle.lower()
    for name in fields:
        value = getattr(record, name, None)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def filter_records(records: Sequence[Any], query: ListQuery, search_fields: Sequence[str]) -> List[Any]:
    result = []
    for record in records:
        if any(getattr(record, attribute, None) != value for attribute, value in query.filters):
            continue
        if query.search and not _matches_search(record, query.search, search_fields):
            continue
        result.append(record)
    return result


def sort_records(records: Sequence[Any], query: ListQuery) -> List[Any]:
    """Stable sort on ``query.sort_by``; records lacking the value go last."""
    if query.sort_by is None:
        return list(records)
    present = [r for r in records if getattr(r, query.sort_by, None) is not None]
    missing = [r for r in records if getattr(r, query.sort_by, None) is None]
    present.sort(key=lambda r: _sort_value(getattr(r, query.sort_by)), reverse=query.descending)
    return present + missing


def _sort_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    return value


def paginate(records: Sequence[Any], page: int, limit: int) -> List[Any]:
    start = (page - 1) * limit
    return list(records[start:start + limit])


def list_page(records: Sequence[Any], query: ListQuery, search_fields: Sequence[str] = ()) -> Tuple[List[Any], Pagination]:
    """Filter, sort and paginate a complete collection locally."""
    matched = sort_records(filter_records(records, query, search_fields), query)
    return paginate(matched, query.page, query.limit), Pagination(total=len(matched), page=query.page, limit=query.limit)


def server_page(
    records: Sequence[Any],
    raw: RawCollection,
    query: ListQuery,
    search_fields: Sequence[str] = (),
) -> Tuple[List[Any], Pagination]:
    """Keep the ERP's paging; only records filtered out locally reduce the total."""
    matched = sort_records(filter_records(records, query, search_fields), query)
    removed = len(records) - len(matched)
    total = max((raw.total or 0) - removed, len(matched))
    pagination = Pagination(total=total, page=raw.page or query.page, limit=raw.limit or query.limit)
    return matched, pagination


def is_server_paged(raw: RawCollection) -> bool:
    return raw.total is not None and raw.total > len(raw.records)


def upstream_params(query: ListQuery, exclude: Sequence[str] = ()) -> Dict[str, str]:
    """Pass the caller's query parameters through to the ERP."""
    return {key: value for key, value in query.params.items() if key not in exclude}
