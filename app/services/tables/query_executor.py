"""Query execution for declarative tables.

Turns the table's base query into the filtered, searched, sorted and
paginated row set. Resolution problems (unknown relation, unknown column,
bad direction) never raise: the step is skipped and logged at DEBUG.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import or_
from sqlalchemy.orm import Query, aliased, selectinload

from app.services.tables.params import RequestParams
from app.services.tables.query_support import (
    count_label,
    has_column,
    is_belongs_to,
    is_has_one,
    query_model,
    relationship_count_expression,
    resolve_column,
    resolve_relationship,
    search_expression,
)

if TYPE_CHECKING:
    from app.services.tables.grouping import Group
    from app.services.tables.table import Table

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = {"asc", "desc"}


@dataclass(frozen=True)
class PaginationInfo:
    total: int
    per_page: int
    current_page: int
    last_page: int
    from_: int | None
    to: int | None

    @classmethod
    def empty(cls, per_page: int) -> PaginationInfo:
        return cls(total=0, per_page=per_page, current_page=1, last_page=1, from_=0, to=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "per_page": self.per_page,
            "current_page": self.current_page,
            "last_page": self.last_page,
            "from": self.from_,
            "to": self.to,
        }


@dataclass
class QueryResult:
    rows: list[Any]
    pagination: PaginationInfo | None
    active_group: Group | None = None
    count_labels: tuple[str, ...] = ()
    summaries: dict[str, list[dict[str, Any]]] | None = None


def normalize_direction(direction: Any) -> str:
    """Only ``asc``/``desc`` are accepted; anything else sorts ascending."""
    if isinstance(direction, str) and direction in SORT_DIRECTIONS:
        return direction
    return "asc"


def paginate(query: Query, page: int, per_page: int) -> tuple[list[Any], PaginationInfo]:
    total = query.order_by(None).count()
    last_page = max(1, math.ceil(total / per_page))
    offset = (page - 1) * per_page
    rows = query.limit(per_page).offset(offset).all()
    first_item = offset + 1 if rows else None
    last_item = offset + len(rows) if rows else None
    return rows, PaginationInfo(
        total=total,
        per_page=per_page,
        current_page=page,
        last_page=last_page,
        from_=first_item,
        to=last_item,
    )


class QueryExecutor:
    def __init__(self, table: Table):
        self.table = table

    def resolve_active_group(self, params: RequestParams) -> Group | None:
        requested = params.group
        column = self.table.default_group if requested is None else requested
        if not column:
            return None
        for group in self.table.groups:
            if group.column == column:
                return group
        return None

    def execute(self, params: RequestParams) -> QueryResult:
        table = self.table
        active_group = self.resolve_active_group(params)

        if table.query is None:
            return QueryResult(rows=[], pagination=PaginationInfo.empty(table.per_page), active_group=active_group)

        query = table.query()
        model = query_model(query)

        query = self._apply_base_query_filters(query, params)
        query, counts = self._apply_relationship_counts(query, model)
        query = self._apply_search(query, model, params)
        query = self._apply_filters(query, params)

        # Aggregates replace the selected entities, which loader options
        # cannot survive, so eager loads are attached afterwards.
        summaries = self._summarize(query)
        query = self._apply_eager_loads(query, model)

        if active_group is not None and active_group.should_order_query():
            query = self._order_by(query, model, active_group.column, "asc", counts)

        sort_column = params.sort or table.default_sort_column
        sort_direction = normalize_direction(params.direction or table.default_sort_direction)
        if sort_column:
            query = self._order_by(query, model, sort_column, sort_direction, counts)

        should_paginate, per_page = self._page_size(params, active_group)
        if should_paginate:
            rows, pagination = paginate(query, params.page, per_page)
        else:
            rows, pagination = query.all(), None

        return QueryResult(
            rows=rows,
            pagination=pagination,
            active_group=active_group,
            count_labels=tuple(counts),
            summaries=summaries,
        )

    def _apply_base_query_filters(self, query: Query, params: RequestParams) -> Query:
        # Runs before anything else so a removed global scope applies to
        # every later step.
        for table_filter in self.table.filters:
            if not table_filter.modifies_base_query:
                continue
            value = params.get(table_filter.name)
            if value is not None:
                query = table_filter.modify_base_query(query, value)
        return query

    def _apply_relationship_counts(self, query: Query, model: type | None) -> tuple[Query, dict[str, Any]]:
        counts: dict[str, Any] = {}
        for relation_name in self.table.counted_relations():
            expression = relationship_count_expression(model, relation_name)
            if expression is None:
                logger.debug("Skipping count for unknown relationship %s", relation_name)
                continue
            query = query.add_columns(expression)
            counts[count_label(relation_name)] = expression
        return query, counts

    def _apply_eager_loads(self, query: Query, model: type | None) -> Query:
        for relation_name in self.table.eager_relations():
            if resolve_relationship(model, relation_name) is None:
                logger.debug("Skipping eager load for unknown relationship %s", relation_name)
                continue
            query = query.options(selectinload(getattr(model, relation_name)))
        return query

    def _apply_search(self, query: Query, model: type | None, params: RequestParams) -> Query:
        term = params.search
        if not term or not self.table.searchable:
            return query
        pattern = f"%{term}%"
        conditions = []
        for column in self.table.columns:
            for name in column.searched_columns():
                condition = search_expression(model, name, pattern)
                if condition is None:
                    logger.debug("Column %s is not searchable against the query", name)
                    continue
                conditions.append(condition)
        if not conditions:
            return query
        return query.filter(or_(*conditions))

    def _apply_filters(self, query: Query, params: RequestParams) -> Query:
        for table_filter in self.table.filters:
            value = params.get(table_filter.name)
            if value is not None:
                query = table_filter.apply(query, value)
        return query

    def _summarize(self, query: Query) -> dict[str, list[dict[str, Any]]]:
        summaries: dict[str, list[dict[str, Any]]] = {}
        for column in self.table.columns:
            for summarizer in getattr(column, "summarizers", None) or []:
                summaries.setdefault(column.name, []).append(
                    {
                        "type": summarizer.type,
                        "label": summarizer.label,
                        "value": summarizer.execute(query, column.name),
                    }
                )
        return summaries

    def _order_by(
        self,
        query: Query,
        model: type | None,
        name: str,
        direction: str,
        counts: dict[str, Any] | None = None,
    ) -> Query:
        if "." in name:
            return self._order_by_relation(query, model, name, direction)

        column = resolve_column(model, name)
        if column is None and counts:
            # A selected count label orders by its alias.
            column = counts.get(name)
        if column is None:
            logger.debug("Skipping sort on unknown column %s", name)
            return query
        return query.order_by(column.desc() if direction == "desc" else column.asc())

    def _order_by_relation(self, query: Query, model: type | None, name: str, direction: str) -> Query:
        relation_name, related_column = name.split(".", 1)
        relationship = resolve_relationship(model, relation_name)
        if relationship is None:
            logger.debug("Skipping sort on unknown relationship %s", relation_name)
            return query
        if not (is_belongs_to(relationship) or is_has_one(relationship)):
            logger.debug("Skipping sort on to-many relationship %s", relation_name)
            return query

        related_model = relationship.mapper.class_
        if not has_column(related_model, related_column):
            fallback = self.table.sort_fallbacks.get(related_column)
            if fallback is None or not has_column(related_model, fallback):
                logger.debug("Skipping sort on unknown related column %s", name)
                return query
            related_column = fallback

        # The ORM keeps selecting only the root entity after the join, so no
        # column from the related table leaks into the row.
        target = aliased(related_model)
        order_column = getattr(target, related_column)
        return query.outerjoin(getattr(model, relation_name).of_type(target)).order_by(
            order_column.desc() if direction == "desc" else order_column.asc()
        )

    def _page_size(self, params: RequestParams, active_group: Group | None) -> tuple[bool, int]:
        table = self.table
        per_page = params.per_page or table.per_page
        should_paginate = table.paginated

        if active_group is not None and not params.has("per_page"):
            if table.grouped_per_page == -1:
                should_paginate = False
            elif table.grouped_per_page is not None and table.grouped_per_page > 0:
                per_page = table.grouped_per_page
            else:
                per_page = table.grouped_default_per_page
        return should_paginate, per_page
