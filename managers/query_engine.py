"""
Client-side query engine

Derives the visible slice of an in-memory collection: exact-match filters,
then free-text search, then a stable sort, then pagination with the page
clamped into range.
"""

import locale
import logging
import math
import unicodedata
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models import DerivedView, QueryState, SortOrder

logger = logging.getLogger(__name__)

_MISSING = object()
IGNORED_FILTER_VALUES = ("", "all", None)


def resolve_path(entity: Any, path: str) -> Any:
    """Follow a dotted path such as ``employee.user.email``; None when absent."""
    current = entity
    for part in path.split('.'):
        if isinstance(current, Mapping):
            current = current.get(part, _MISSING)
        else:
            current = getattr(current, part, _MISSING)
        if current is _MISSING or current is None:
            return None
    return current


def _fold(text: str) -> str:
    # accented letters sort with their base letter under any collation
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _string_key(value: Any) -> Tuple[str, str]:
    if value is None:
        return ("", "")
    # strxfrm rejects embedded NUL characters
    text = str(value).replace("\x00", "")
    return (locale.strxfrm(_fold(text)), locale.strxfrm(text.casefold()))


def _number_key(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _date_key(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text).timestamp()
    except ValueError:
        return 0.0


def _count_key(value: Any) -> int:
    if isinstance(value, (list, tuple, set, dict)):
        return len(value)
    return 0


SORT_KEYS = {
    'string': _string_key,
    'number': _number_key,
    'date': _date_key,
    'count': _count_key,
}


def _matches_filter(value: Any, expected: Any) -> bool:
    if isinstance(value, bool):
        return str(value).lower() == str(expected).strip().lower()
    if isinstance(expected, str) and not isinstance(value, str):
        return value is not None and str(value) == expected
    return value == expected


class QueryEngine:
    """Filter, search, sort and paginate one resource's collection"""

    def __init__(self, search_fields: Sequence[str] = (),
                 sort_fields: Optional[Mapping[str, Any]] = None,
                 filter_fields: Iterable[str] = ()):
        """
        Args:
            search_fields: dotted paths matched by the free-text search
            sort_fields: sort key to ``SortField`` (anything with ``path`` and ``kind``)
            filter_fields: dotted paths accepted as exact-match filters
        """
        self.search_fields = tuple(search_fields)
        self.sort_fields = dict(sort_fields or {})
        self.filter_fields = set(filter_fields)

    @classmethod
    def for_resource(cls, spec) -> "QueryEngine":
        return cls(spec.search_fields, spec.sort_fields, spec.filter_fields)

    def apply_filters(self, items: List[Any], filters: Dict[str, Any]) -> List[Any]:
        active = {
            key: value for key, value in filters.items()
            if key in self.filter_fields and value not in IGNORED_FILTER_VALUES
            and not (isinstance(value, str) and value.strip().lower() == "all")
        }
        if not active:
            return items
        return [
            item for item in items
            if all(_matches_filter(resolve_path(item, key), value) for key, value in active.items())
        ]

    def apply_search(self, items: List[Any], term: str) -> List[Any]:
        needle = (term or "").strip().casefold()
        if not needle or not self.search_fields:
            return items
        result = []
        for item in items:
            for path in self.search_fields:
                value = resolve_path(item, path)
                if value is not None and needle in str(value).casefold():
                    result.append(item)
                    break
        return result

    def apply_sort(self, items: List[Any], sort_by: Optional[str], order: SortOrder) -> List[Any]:
        field = self.sort_fields.get(sort_by) if sort_by else None
        if field is None:
            return items
        key_fn = SORT_KEYS.get(field.kind, _string_key)
        # sorted() stays stable with reverse=True
        return sorted(
            items,
            key=lambda item: key_fn(resolve_path(item, field.path)),
            reverse=order == SortOrder.DESC,
        )

    def derive(self, collection: Optional[Sequence[Any]], query: QueryState) -> DerivedView:
        """Compute the visible slice for ``query``.

        The returned view carries a copy of the query with
        ``current_page`` clamped into ``[1, total_pages]``.
        """
        items = list(collection or [])
        filtered = self.apply_filters(items, query.filters)
        filtered = self.apply_search(filtered, query.search_term)
        ordered = self.apply_sort(filtered, query.sort_by, query.sort_order)

        per_page = query.items_per_page
        total_pages = max(1, math.ceil(len(ordered) / per_page))
        page = min(max(query.current_page, 1), total_pages)
        effective = query if page == query.current_page else query.with_page(page)

        start = (page - 1) * per_page
        return DerivedView(
            visible=ordered[start:start + per_page],
            total_pages=total_pages,
            total_count=len(items),
            filtered_count=len(ordered),
            query=effective,
        )
