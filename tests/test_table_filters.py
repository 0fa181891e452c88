from __future__ import annotations

from app.services.tables import (
    Filter,
    QueryFilter,
    RequestParams,
    SelectFilter,
    Table,
    TernaryFilter,
    TextColumn,
    TrashedFilter,
)
from tests.models import Customer


class _Spy:
    """Records which ternary branch ran."""

    def __init__(self):
        self.calls = []

    def branch(self, name):
        def _apply(query):
            self.calls.append(name)
            return query

        return _apply


def _ternary_spy() -> tuple[TernaryFilter, _Spy]:
    spy = _Spy()
    ternary = TernaryFilter(
        "vip",
        true_query=spy.branch("true"),
        false_query=spy.branch("false"),
        blank_query=spy.branch("blank"),
    )
    return ternary, spy


def _names(db_session, filters, **params) -> list[str]:
    table = Table(
        query=lambda: db_session.query(Customer),
        columns=[TextColumn("first_name")],
        filters=filters,
        default_sort_column="first_name",
        default_sort_direction="asc",
    )
    records = table.get_records(RequestParams.from_mapping(params))["records"]
    return [record["first_name"] for record in records]


def test_ternary_filter_dispatches_three_ways():
    ternary, spy = _ternary_spy()
    query = object()

    assert ternary.apply(query, None) is query
    ternary.apply(query, "1")
    ternary.apply(query, "0")
    ternary.apply(query, "")
    ternary.apply(query, "blank")
    ternary.apply(query, "yes")
    ternary.apply(query, "off")

    assert spy.calls == ["blank", "true", "false", "blank", "blank", "true", "false"]


def test_ternary_filter_on_attribute(db_session, customers):
    vip = TernaryFilter("is_vip")

    assert _names(db_session, [vip], is_vip="true") == ["Ann", "Dee"]
    assert _names(db_session, [vip], is_vip="false") == ["Bob", "Cid"]
    assert _names(db_session, [vip], is_vip="") == ["Ann", "Bob", "Cid", "Dee"]


def test_nullable_ternary_filter_checks_presence(db_session, customers):
    has_balance = TernaryFilter("has_balance", attribute="balance", nullable=True)

    assert _names(db_session, [has_balance], has_balance="1") == ["Ann", "Bob", "Dee"]
    assert _names(db_session, [has_balance], has_balance="0") == ["Cid"]


def test_select_filter_single_and_multiple(db_session, customers):
    status = SelectFilter("status", options={"active": "Active", "suspended": "Suspended"})
    statuses = SelectFilter("statuses", attribute="status", multiple=True)

    assert _names(db_session, [status], status="suspended") == ["Cid"]
    assert _names(db_session, [status], status="") == ["Ann", "Bob", "Cid", "Dee"]
    assert _names(db_session, [statuses], statuses=["suspended", ""]) == ["Cid"]
    assert _names(db_session, [statuses], statuses=[]) == ["Ann", "Bob", "Cid", "Dee"]


def test_select_filter_with_unknown_attribute_is_noop(db_session, customers):
    missing = SelectFilter("missing")

    assert _names(db_session, [missing], missing="x") == ["Ann", "Bob", "Cid", "Dee"]


def test_query_filter_only_runs_when_switched_on(db_session, customers):
    vip_only = QueryFilter("vip_only", query=lambda query, value: query.filter(Customer.is_vip.is_(True)))

    assert _names(db_session, [vip_only], vip_only="1") == ["Ann", "Dee"]
    for off in ("0", "false", ""):
        assert _names(db_session, [vip_only], vip_only=off) == ["Ann", "Bob", "Cid", "Dee"]


def test_base_filter_without_query_is_noop():
    query = object()

    assert Filter("anything").apply(query, "value") is query


def test_trashed_filter_unknown_state_leaves_scope(db_session, customers):
    assert _names(db_session, [TrashedFilter()], trashed="banana") == ["Ann", "Bob", "Cid", "Dee"]
    assert _names(db_session, [TrashedFilter()], trashed="only") == ["Eve"]


def test_filter_indicators():
    status = SelectFilter("status", indicate_using=lambda value: f"Status: {value}")
    raw = Filter("raw", indicate_using=lambda value: {"label": "Raw", "removeField": "raw"})
    silent = Filter("silent")
    table = Table(filters=[status, raw, silent])

    indicators = table.filter_indicators(
        RequestParams.from_mapping(status="active", raw="1", silent="x")
    )

    assert indicators == [
        {"label": "Status: active", "removeField": "status"},
        {"label": "Raw", "removeField": "raw"},
    ]
    assert table.filter_indicators(RequestParams.from_mapping(status="")) == []


def test_filter_props():
    trashed = TrashedFilter().to_props()
    select = SelectFilter("status", options=lambda: {"a": "A"}).to_props()

    assert trashed["name"] == "trashed"
    assert trashed["default"] == "without"
    assert trashed["isTrashedFilter"] is True
    assert select["options"] == {"a": "A"}
    assert select["placeholder"] == "All"
    assert select["label"] == "Status"
