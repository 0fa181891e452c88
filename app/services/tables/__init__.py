"""Declarative admin tables.

A :class:`Table` is assembled from columns, filters, groups and actions;
its query is executed by :class:`QueryExecutor` and each row is serialized
by :class:`RecordProcessor`:

    from app.services.tables import Table, TextColumn, SelectFilter

    table = Table(
        query=lambda: db.query(Customer),
        columns=[TextColumn("email", searchable=True, sortable=True)],
        filters=[SelectFilter("status", options={"active": "Active"})],
    )
    table.get_records(RequestParams.from_query_params(request.query_params))
"""

from app.services.tables.actions import Action
from app.services.tables.card import Card
from app.services.tables.columns import (
    BadgeColumn,
    BooleanColumn,
    CheckboxColumn,
    ColorColumn,
    Column,
    IconColumn,
    ImageColumn,
    SelectColumn,
    TextColumn,
    TextInputColumn,
    ToggleColumn,
)
from app.services.tables.filters import (
    Filter,
    QueryFilter,
    SelectFilter,
    TernaryFilter,
    TrashedFilter,
)
from app.services.tables.grouping import Group
from app.services.tables.params import RequestParams
from app.services.tables.query_executor import PaginationInfo, QueryExecutor, QueryResult
from app.services.tables.records import OutputRecord, RecordProcessor
from app.services.tables.registry import TableRegistry
from app.services.tables.summarizers import Average, Count, Range, Sum, Summarizer
from app.services.tables.table import Table

__all__ = [
    "Action",
    "Average",
    "BadgeColumn",
    "BooleanColumn",
    "Card",
    "CheckboxColumn",
    "ColorColumn",
    "Column",
    "Count",
    "Filter",
    "Group",
    "IconColumn",
    "ImageColumn",
    "OutputRecord",
    "PaginationInfo",
    "QueryExecutor",
    "QueryFilter",
    "QueryResult",
    "Range",
    "RecordProcessor",
    "RequestParams",
    "SelectColumn",
    "SelectFilter",
    "Sum",
    "Summarizer",
    "Table",
    "TableRegistry",
    "TernaryFilter",
    "TextColumn",
    "TextInputColumn",
    "ToggleColumn",
    "TrashedFilter",
]
