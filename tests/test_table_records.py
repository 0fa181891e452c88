from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from app.services.tables import (
    Action,
    BadgeColumn,
    BooleanColumn,
    Card,
    Column,
    Group,
    RequestParams,
    Table,
    TextColumn,
)
from app.services.tables.records import (
    OutputRecord,
    RecordProcessor,
    convert_value,
    data_get,
)
from tests.models import Customer, Order


def _edit_action() -> Action:
    return Action(name="edit", url="/customers/{id}/edit")


def test_dotted_column_is_flattened_onto_record():
    table = Table(columns=[TextColumn("customer.full_name")])
    row = {"id": 1, "customer": {"full_name": "Jane Doe"}}

    record = RecordProcessor(table).process(row).to_dict()

    assert record["customer.full_name"] == "Jane Doe"
    assert record["customer"] == {"full_name": "Jane Doe"}


def test_literal_dotted_key_takes_precedence():
    table = Table(columns=[TextColumn("customer.full_name")])
    processor = RecordProcessor(table)

    flat = processor.process({"id": 1, "customer.full_name": "Jane Doe"}).to_dict()
    missing = processor.process({"id": 2, "customer": None}).to_dict()

    assert flat["customer.full_name"] == "Jane Doe"
    assert "customer.full_name" not in missing


def test_column_projection_rows_keep_their_fields(db_session, customers):
    table = Table(
        query=lambda: db_session.query(Customer.id, Customer.first_name),
        columns=[TextColumn("first_name", searchable=True)],
        record_actions=[_edit_action()],
    )

    result = table.get_records(RequestParams.from_mapping(search="Ann"))

    assert len(result["records"]) == 1
    record = result["records"][0]
    assert record["first_name"] == "Ann"
    assert record["id"] == customers["ann"].id
    assert record["_url"] == f"/customers/{customers['ann'].id}/edit"


def test_dotted_column_reads_orm_relationship_properties(db_session, customers):
    table = Table(
        query=lambda: db_session.query(Order),
        columns=[TextColumn("reference", sortable=True), TextColumn("customer.full_name")],
    )

    result = table.get_records(RequestParams.from_mapping(sort="reference", direction="asc"))

    assert [record["customer.full_name"] for record in result["records"]] == [
        "Ann Zimmer",
        "Ann Zimmer",
        "Bob Young",
    ]
    assert result["records"][0]["customer"]["email"] == "ann@x.com"


def test_record_actions_are_resolved_per_row():
    action = _edit_action()
    table = Table(columns=[Column("name")], record_actions=[action])
    processor = RecordProcessor(table)

    first = processor.process({"id": 1, "name": "A"}).to_dict()
    second = processor.process({"id": 2, "name": "B"}).to_dict()

    assert first["_actions"][0]["url"] == "/customers/1/edit"
    assert second["_actions"][0]["url"] == "/customers/2/edit"
    assert first["_actions"][0]["recordId"] == 1
    assert action.record_id is None


def test_hidden_actions_are_omitted_for_that_row(db_session, customers):
    restore = Action(name="restore", visible=lambda record: record.trashed())
    table = Table(
        query=lambda: db_session.query(Customer).execution_options(include_deleted=True),
        columns=[TextColumn("first_name")],
        record_actions=[_edit_action(), restore],
    )

    result = table.get_records(RequestParams.from_mapping(sort="first_name", direction="asc"))

    actions = {
        record["first_name"]: [action["name"] for action in record["_actions"]]
        for record in result["records"]
    }
    assert actions["Ann"] == ["edit"]
    assert actions["Eve"] == ["edit", "restore"]


def test_soft_delete_timestamp_is_always_surfaced(db_session, customers):
    table = Table(
        query=lambda: db_session.query(Customer).execution_options(include_deleted=True),
        columns=[TextColumn("first_name")],
    )

    result = table.get_records(RequestParams.from_mapping(sort="first_name", direction="asc"))

    deleted = {record["first_name"]: record["deleted_at"] for record in result["records"]}
    assert deleted["Ann"] is None
    assert isinstance(deleted["Eve"], str)


def test_failing_action_is_skipped_and_logged(caplog):
    def _broken(record):
        raise RuntimeError("no route")

    table = Table(
        columns=[Column("name")],
        record_actions=[Action(name="broken", url=_broken), _edit_action()],
    )

    with caplog.at_level(logging.WARNING, logger="app.services.tables.records"):
        record = RecordProcessor(table).process({"id": 5, "name": "A"}).to_dict()

    assert [action["name"] for action in record["_actions"]] == ["edit"]
    assert "Skipping action broken" in caplog.text


def test_formatter_returning_same_value_leaves_field_untouched():
    calls = []

    def _identity(state, record):
        calls.append(state)
        return state

    table = Table(columns=[TextColumn("status", format_using=_identity)])

    record = RecordProcessor(table).process({"id": 1, "status": "active"}).to_dict()

    assert record["status"] == "active"
    assert calls == ["active"]


def test_formatter_overwrites_changed_value():
    table = Table(
        columns=[TextColumn("status", format_using=lambda state, record: state.upper())]
    )

    record = RecordProcessor(table).process({"id": 1, "status": "active"}).to_dict()

    assert record["status"] == "ACTIVE"


def test_state_using_is_written_back():
    table = Table(
        columns=[
            TextColumn(
                "display",
                state_using=lambda record: f"{record['first']} {record['last']}",
            )
        ]
    )

    record = RecordProcessor(table).process({"id": 1, "first": "Jane", "last": "Doe"}).to_dict()

    assert record["display"] == "Jane Doe"


def test_side_maps_only_hold_non_null_evaluations():
    table = Table(
        columns=[
            BadgeColumn("status", colors={"success": "active", "danger": "suspended"}),
            BooleanColumn("is_vip"),
            TextColumn("email", description=lambda state, record: None, size="sm"),
            TextColumn("plain"),
        ]
    )

    record = RecordProcessor(table).process(
        {"id": 1, "status": "active", "is_vip": False, "email": "a@x.com", "plain": "p"}
    ).to_dict()

    assert record["_colors"] == {"status": "success", "is_vip": "danger"}
    assert record["_icons"] == {"is_vip": "XCircle"}
    assert record["_sizes"] == {"is_vip": "large", "email": "sm"}
    assert record["_descriptions"] == {}
    assert "plain" not in record["_colors"]


def test_tooltip_and_url_side_maps_are_emitted_when_set():
    table = Table(
        columns=[
            TextColumn("email", tooltip="Primary address", url=lambda state, record: f"mailto:{state}"),
            TextColumn("status"),
        ]
    )
    processor = RecordProcessor(table)

    record = processor.process({"id": 1, "email": "a@x.com", "status": "active"}).to_dict()
    plain = RecordProcessor(Table(columns=[TextColumn("status")])).process(
        {"id": 2, "status": "active"}
    ).to_dict()

    assert record["_tooltips"] == {"email": "Primary address"}
    assert record["_urls"] == {"email": "mailto:a@x.com"}
    assert "_tooltips" not in plain
    assert "_urls" not in plain


def test_group_context_is_attached_for_active_group():
    group = Group(
        "team",
        title_using=lambda record, value: f"Team {value}",
        description_attribute="region",
    )
    table = Table(columns=[Column("name")], groups=[group])

    record = RecordProcessor(table, group).process(
        {"id": 1, "name": "A", "team": "Alpha", "region": "North"}
    ).to_dict()

    assert record["_group"] == {
        "column": "team",
        "value": "Alpha",
        "title": "Team Alpha",
        "description": "North",
    }


def test_group_title_defaults_to_value():
    group = Group("team")
    record = RecordProcessor(Table(), group).process({"id": 1, "team": 3}).to_dict()

    assert record["_group"]["title"] == "3"
    assert record["_group"]["description"] is None


def test_record_url_prefers_explicit_callback():
    table = Table(
        columns=[Column("name")],
        record_actions=[_edit_action()],
        record_url=lambda record: f"/customers/{record['id']}",
    )

    record = RecordProcessor(table).process({"id": 4, "name": "A"}).to_dict()

    assert record["_url"] == "/customers/4"


def test_record_url_falls_back_to_first_action():
    table = Table(columns=[Column("name")], record_actions=[_edit_action()])

    record = RecordProcessor(table).process({"id": 4, "name": "A"}).to_dict()

    assert record["_url"] == "/customers/4/edit"


def test_record_url_uses_first_declared_action_even_when_hidden():
    edit = Action(
        name="edit",
        url="/customers/{id}/edit",
        visible=lambda record: record.get("deleted_at") is None,
    )
    restore = Action(name="restore", url="/customers/{id}/restore", method="post")
    table = Table(columns=[Column("name")], record_actions=[edit, restore])

    record = RecordProcessor(table).process(
        {"id": 5, "name": "Eve", "deleted_at": "2024-01-01T00:00:00"}
    ).to_dict()

    assert [action["name"] for action in record["_actions"]] == ["restore"]
    assert record["_url"] == "/customers/5/edit"


def test_record_url_failure_is_logged(caplog):
    def _broken(record):
        raise RuntimeError("no route")

    table = Table(columns=[Column("name")], record_actions=[Action(name="view", url=_broken)])

    with caplog.at_level(logging.WARNING, logger="app.services.tables.records"):
        record = RecordProcessor(table).process({"id": 6, "name": "A"}).to_dict()

    assert "_url" not in record
    assert "Record URL could not be resolved for 6" in caplog.text


def test_record_url_fallback_can_be_disabled():
    table = Table(
        columns=[Column("name")],
        record_actions=[_edit_action()],
        record_url_from_first_action=False,
    )

    record = RecordProcessor(table).process({"id": 4, "name": "A"}).to_dict()

    assert "_url" not in record


def test_badge_color_from_card():
    card = Card.simple(badge_field="status", badge_color=lambda value: "success" if value == "paid" else "gray")
    table = Table(columns=[Column("status")], card=card)
    processor = RecordProcessor(table)

    paid = processor.process({"id": 1, "status": "paid"}).to_dict()
    missing = processor.process({"id": 2, "status": None}).to_dict()

    assert paid["_badgeColor"] == "success"
    assert "_badgeColor" not in missing


def test_processing_does_not_mutate_the_row():
    row = {"id": 1, "customer": {"full_name": "Jane Doe"}, "status": "active"}
    table = Table(
        columns=[
            TextColumn("customer.full_name"),
            TextColumn("status", format_using=lambda state, record: "Active"),
        ]
    )
    processor = RecordProcessor(table)

    first = processor.process(row)
    second = processor.process(row)

    assert row == {"id": 1, "customer": {"full_name": "Jane Doe"}, "status": "active"}
    assert first == second
    assert isinstance(first, OutputRecord)


def test_convert_value_handles_common_types():
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert convert_value(Decimal("1.50")) == 1.5
    assert convert_value(moment) == "2024-01-02T03:04:05+00:00"
    assert convert_value({"a": [Decimal("2")]}) == {"a": [2.0]}


def test_data_get_walks_mappings_and_objects():
    class Holder:
        nested = {"value": 3}

    assert data_get({"a": {"b": 1}}, "a.b") == 1
    assert data_get({"a": None}, "a.b", "fallback") == "fallback"
    assert data_get(Holder(), "nested.value") == 3
