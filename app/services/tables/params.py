"""Explicit request parameters consumed by the table query pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

SEARCH_PARAM = "search"
SORT_PARAM = "sort"
DIRECTION_PARAM = "direction"
GROUP_PARAM = "group"
PAGE_PARAM = "page"
PER_PAGE_PARAM = "per_page"


def _parse_positive_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class RequestParams:
    """Immutable view over the incoming query string.

    Values are either scalars or lists (for repeated keys and ``key[]``
    parameters). Absent keys read as ``None``.
    """

    values: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_query_params(cls, query_params) -> RequestParams:
        """Build params from a Starlette ``QueryParams`` (or any multi-dict)."""
        values: dict[str, Any] = {}
        for key in query_params.keys():
            if key in values:
                continue
            items = query_params.getlist(key) if hasattr(query_params, "getlist") else [query_params[key]]
            if key.endswith("[]"):
                values[key[:-2]] = list(items)
            elif len(items) > 1:
                values[key] = list(items)
            else:
                values[key] = items[0] if items else None
        return cls(values=values)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> RequestParams:
        values = dict(mapping or {})
        values.update(kwargs)
        return cls(values=values)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.values.get(key)
        return default if value is None else value

    def has(self, key: str) -> bool:
        return key in self.values

    @property
    def search(self) -> str | None:
        term = self.values.get(SEARCH_PARAM)
        if isinstance(term, list):
            term = term[0] if term else None
        if term is None:
            return None
        term = str(term).strip()
        return term or None

    @property
    def sort(self) -> str | None:
        value = self.values.get(SORT_PARAM)
        return str(value) if value not in (None, "") else None

    @property
    def direction(self) -> str | None:
        value = self.values.get(DIRECTION_PARAM)
        return str(value) if value is not None else None

    @property
    def group(self) -> str | None:
        # An explicit empty value means "no grouping" and must not fall back
        # to the table default, so "" is preserved here.
        value = self.values.get(GROUP_PARAM)
        return str(value) if value is not None else None

    @property
    def page(self) -> int:
        return _parse_positive_int(self.values.get(PAGE_PARAM)) or 1

    @property
    def per_page(self) -> int | None:
        return _parse_positive_int(self.values.get(PER_PAGE_PARAM))
