from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Query

from app.config import settings
from app.services.tables.actions import Action
from app.services.tables.card import Card
from app.services.tables.columns import Column
from app.services.tables.filters import Filter
from app.services.tables.grouping import Group
from app.services.tables.params import RequestParams
from app.services.tables.query_executor import QueryExecutor, QueryResult, normalize_direction
from app.services.tables.records import RecordProcessor

logger = logging.getLogger(__name__)

QueryCallback = Callable[[], Query]
RecordUrlCallback = Callable[[Any], str | None]

DISABLE_GROUPED_PAGINATION = -1


def _default_sort_fallbacks() -> dict[str, str]:
    return {"full_name": "first_name"}


@dataclass(eq=False)
class Table:
    """Declarative admin table.

    A table is assembled once per request from its columns, filters, groups
    and actions, then asked either for its records (:meth:`get_records`) or
    for the full envelope handed to the renderer (:meth:`to_props`).
    """

    columns: list[Column] = field(default_factory=list)
    filters: list[Filter] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    query: QueryCallback | None = None

    default_sort_column: str | None = field(default_factory=lambda: settings.table_default_sort_column)
    default_sort_direction: str = field(default_factory=lambda: settings.table_default_sort_direction)
    searchable: bool = True
    search_placeholder: str | None = None
    paginated: bool = True
    per_page: int = field(default_factory=lambda: settings.table_default_per_page)
    pagination_page_options: list[int] = field(default_factory=lambda: [12, 24, 48, 96])
    default_group: str | None = None
    grouped_per_page: int | None = None

    actions: list[Action] = field(default_factory=list)
    record_actions: list[Action] = field(default_factory=list)
    header_actions: list[Action] = field(default_factory=list)
    toolbar_actions: list[Action] = field(default_factory=list)
    bulk_actions: list[Action] = field(default_factory=list)

    card: Card | None = None
    cards_per_row: int = 3
    grid_only: bool = False
    record_url: RecordUrlCallback | None = None
    record_url_from_first_action: bool = True
    sort_fallbacks: dict[str, str] = field(default_factory=_default_sort_fallbacks)

    striped: bool = False
    hoverable: bool = True
    filters_layout: str = "dropdown"
    poll_interval: int | None = None
    empty_state_heading: str | None = None
    empty_state_description: str | None = None
    empty_state_icon: str | None = None
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.per_page < 1:
            raise ValueError("per_page must be positive")
        if self.grouped_per_page is not None and self.grouped_per_page != DISABLE_GROUPED_PAGINATION:
            if self.grouped_per_page < 1:
                raise ValueError("grouped_per_page must be positive or -1 to disable pagination")
        self.default_sort_direction = normalize_direction(self.default_sort_direction)

    @property
    def grouped_default_per_page(self) -> int:
        return settings.table_grouped_per_page

    def counted_relations(self) -> list[str]:
        relations: list[str] = []
        for column in self.columns:
            relation = getattr(column, "counts_relation", None)
            if relation and relation not in relations:
                relations.append(relation)
        return relations

    def eager_relations(self) -> list[str]:
        relations: list[str] = []
        for column in self.columns:
            if "." not in column.name:
                continue
            relation = column.name.split(".", 1)[0]
            if relation not in relations:
                relations.append(relation)
        return relations

    def execute(self, params: RequestParams | None = None) -> QueryResult:
        return QueryExecutor(self).execute(params or RequestParams())

    def process_records(self, result: QueryResult) -> list[dict[str, Any]]:
        processor = RecordProcessor(self, result.active_group, result.count_labels)
        return processor.process_many(result.rows)

    def get_records(self, params: RequestParams | None = None) -> dict[str, Any]:
        result = self.execute(params)
        return self._records_envelope(result)

    def filter_indicators(self, params: RequestParams) -> list[dict[str, Any]]:
        indicators: list[dict[str, Any]] = []
        for table_filter in self.filters:
            value = params.get(table_filter.name)
            if value is None or value == "" or value == []:
                continue
            indicator = table_filter.indicator(value)
            if indicator is not None:
                indicators.append(indicator)
        return indicators

    def empty_state(self) -> dict[str, Any]:
        return {
            "heading": self.empty_state_heading,
            "description": self.empty_state_description,
            "icon": self.empty_state_icon,
        }

    def to_props(self, params: RequestParams | None = None) -> dict[str, Any]:
        params = params or RequestParams()
        result = self.execute(params)
        envelope = self._records_envelope(result)
        logger.debug(
            "Built table envelope: %d records, group=%s",
            len(envelope["records"]),
            envelope["activeGroup"],
        )
        return {
            "columns": [column.to_props() for column in self.columns],
            "filters": [table_filter.to_props() for table_filter in self.filters],
            "filterIndicators": self.filter_indicators(params),
            "actions": [action.to_dict() for action in self.actions],
            "recordActions": [action.to_dict() for action in self.record_actions],
            "headerActions": [action.to_dict() for action in self.header_actions],
            "toolbarActions": [action.to_dict() for action in self.toolbar_actions],
            "bulkActions": [action.to_dict() for action in self.bulk_actions],
            "searchable": self.searchable,
            "searchPlaceholder": self.search_placeholder,
            "paginated": self.paginated,
            "perPage": self.per_page,
            "paginationPageOptions": list(self.pagination_page_options),
            "striped": self.striped,
            "hoverable": self.hoverable,
            "filtersLayout": self.filters_layout,
            "groups": [group.to_props() for group in self.groups],
            "defaultGroup": self.default_group,
            "activeGroup": envelope["activeGroup"],
            "pollInterval": self.poll_interval,
            "defaultSortColumn": self.default_sort_column,
            "defaultSortDirection": self.default_sort_direction,
            "records": envelope["records"],
            "pagination": envelope["pagination"],
            "summaries": result.summaries or {},
            "card": self.card.to_props() if self.card is not None else None,
            "cardsPerRow": self.cards_per_row,
            "gridOnly": self.grid_only,
            "emptyState": self.empty_state(),
            "options": dict(self.options),
        }

    def _records_envelope(self, result: QueryResult) -> dict[str, Any]:
        return {
            "records": self.process_records(result),
            "pagination": result.pagination.to_dict() if result.pagination is not None else None,
            "activeGroup": result.active_group.column if result.active_group is not None else None,
        }
