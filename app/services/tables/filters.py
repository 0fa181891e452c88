"""Request-driven query filters.

A filter is a named strategy ``apply(query, value) -> query``. The executor
only calls ``apply`` when the request carries a non-null value under the
filter's name.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Query

from app.models.soft_delete import INCLUDE_DELETED_OPTION, supports_soft_deletes
from app.services.tables.query_support import query_model, resolve_column

logger = logging.getLogger(__name__)

FilterQueryCallback = Callable[[Query, Any], Query]
StateQueryCallback = Callable[[Query], Query]
IndicatorCallback = Callable[[Any], Any]

TRUE_TOKENS = {"1", "true", "on", "yes"}
BLANK_TOKENS = {"", "blank"}

TRASHED_WITH = "with"
TRASHED_ONLY = "only"
TRASHED_WITHOUT = "without"


def _headline(name: str) -> str:
    return name.replace("_", " ").replace(".", " ").title()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in BLANK_TOKENS)


def _is_truthy_token(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_TOKENS


@dataclass(eq=False)
class Filter:
    name: str
    label: str | None = None
    attribute: str | None = None
    query: FilterQueryCallback | None = None
    default: Any = None
    indicate_using: IndicatorCallback | None = None

    component = "BaseFilter"
    modifies_base_query = False

    def get_label(self) -> str:
        return self.label or _headline(self.name)

    def get_attribute(self) -> str:
        return self.attribute or self.name

    def resolve_attribute(self, query: Query):
        column = resolve_column(query_model(query), self.get_attribute())
        if column is None:
            logger.debug("Filter %s: attribute %s is not a column", self.name, self.get_attribute())
        return column

    def apply(self, query: Query, value: Any) -> Query:
        if self.query is not None:
            return self.query(query, value)
        return query

    def indicator(self, value: Any) -> dict[str, Any] | None:
        if self.indicate_using is None:
            return None
        result = self.indicate_using(value)
        if isinstance(result, str):
            return {"label": result, "removeField": self.name}
        return result

    def to_props(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "name": self.name,
            "label": self.get_label(),
            "default": self.default,
        }


@dataclass(eq=False)
class SelectFilter(Filter):
    options: Mapping[Any, Any] | Callable[[], Mapping[Any, Any]] = field(default_factory=dict)
    multiple: bool = False
    searchable: bool = False
    selectable_placeholder: bool = True
    placeholder: str | None = None

    component = "SelectFilter"

    def get_options(self) -> dict[Any, Any]:
        options = self.options() if callable(self.options) else self.options
        return dict(options or {})

    def apply(self, query: Query, value: Any) -> Query:
        if self.query is not None:
            return self.query(query, value)

        if self.multiple:
            values = value if isinstance(value, (list, tuple)) else [value]
            values = [item for item in values if item not in (None, "")]
            if not values:
                return query
            column = self.resolve_attribute(query)
            return query.filter(column.in_(values)) if column is not None else query

        if value is None or value == "" or isinstance(value, (list, tuple)):
            return query
        column = self.resolve_attribute(query)
        return query.filter(column == value) if column is not None else query

    def to_props(self) -> dict[str, Any]:
        placeholder = self.placeholder or ("All" if self.selectable_placeholder else None)
        return {
            **super().to_props(),
            "options": self.get_options(),
            "multiple": self.multiple,
            "searchable": self.searchable,
            "placeholder": placeholder,
        }


@dataclass(eq=False)
class QueryFilter(Filter):
    """Toggle filter: the query callback only runs when switched on."""

    component = "QueryFilter"

    def apply(self, query: Query, value: Any) -> Query:
        if not value or value in ("false", "0"):
            return query
        return super().apply(query, value)


@dataclass(eq=False)
class TernaryFilter(Filter):
    true_label: str = "Yes"
    false_label: str = "No"
    placeholder_label: str | None = None
    nullable: bool = False
    true_query: StateQueryCallback | None = None
    false_query: StateQueryCallback | None = None
    blank_query: StateQueryCallback | None = None

    component = "TernaryFilter"

    def apply(self, query: Query, value: Any) -> Query:
        if _is_blank(value):
            if self.blank_query is not None:
                return self.blank_query(query)
            return query

        state = _is_truthy_token(value)
        if state and self.true_query is not None:
            return self.true_query(query)
        if not state and self.false_query is not None:
            return self.false_query(query)

        column = self.resolve_attribute(query)
        if column is None:
            return query
        if self.nullable:
            return query.filter(column.is_not(None) if state else column.is_(None))
        return query.filter(column.is_(state))

    def to_props(self) -> dict[str, Any]:
        return {
            **super().to_props(),
            "options": {"true": self.true_label, "false": self.false_label},
            "placeholder": self.placeholder_label or "All",
            "nullable": self.nullable,
        }


@dataclass(eq=False)
class TrashedFilter(Filter):
    """Switches soft-delete visibility between without/with/only trashed rows."""

    name: str = "trashed"
    label: str | None = "Deleted records"
    default: Any = TRASHED_WITHOUT

    component = "TrashedFilter"
    modifies_base_query = True

    @staticmethod
    def trashed_state(value: Any) -> str:
        return TRASHED_WITHOUT if value in (None, "") else str(value)

    def modify_base_query(self, query: Query, value: Any) -> Query:
        """Drop the global soft-delete scope when trashed rows must be visible."""
        if self.trashed_state(value) in (TRASHED_WITH, TRASHED_ONLY):
            return query.execution_options(**{INCLUDE_DELETED_OPTION: True})
        return query

    def apply(self, query: Query, value: Any) -> Query:
        model = query_model(query)
        if model is None or not supports_soft_deletes(model):
            return query
        state = self.trashed_state(value)
        if state == TRASHED_ONLY:
            return query.filter(model.deleted_at.is_not(None))
        if state == TRASHED_WITHOUT:
            return query.filter(model.deleted_at.is_(None))
        return query

    def to_props(self) -> dict[str, Any]:
        return {
            **super().to_props(),
            "options": {
                TRASHED_WITHOUT: "Without deleted records",
                TRASHED_WITH: "With deleted records",
                TRASHED_ONLY: "Only deleted records",
            },
            "isTrashedFilter": True,
        }
