"""Per-row serialization of table query results.

Each raw row (ORM instance, ``Row`` carrying count columns, or a plain
mapping) becomes an :class:`OutputRecord`: the row's own fields plus the
side maps the renderer reads (``_icons``, ``_colors``, ``_sizes``,
``_descriptions``, ``_actions`` and the optional ``_tooltips``, ``_urls``,
``_group``, ``_url`` and ``_badgeColor``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.engine import Row
from sqlalchemy.orm import InstanceState

from app.models.soft_delete import supports_soft_deletes
from app.services.tables.actions import record_key

if TYPE_CHECKING:
    from app.services.tables.grouping import Group
    from app.services.tables.table import Table

logger = logging.getLogger(__name__)

_MISSING = object()


def convert_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {key: convert_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [convert_value(item) for item in value]
    return value


def serialize_entity(entity: Any, _seen: frozenset[int] = frozenset()) -> dict[str, Any]:
    """Flatten an ORM instance into string-keyed attributes.

    Mapped columns are always included, refreshing expired ones.
    Relationships are included only when already loaded, and an instance is
    never serialized twice along one path, so back-references terminate.
    """
    state = sa_inspect(entity, raiseerr=False)
    if state is None or not hasattr(state, "mapper"):
        return {}
    seen = _seen | {id(entity)}
    data: dict[str, Any] = {}
    for attr in state.mapper.column_attrs:
        data[attr.key] = convert_value(getattr(entity, attr.key))
    for relationship in state.mapper.relationships:
        if relationship.key in state.unloaded:
            continue
        related = getattr(entity, relationship.key)
        if related is None:
            data[relationship.key] = None
        elif relationship.uselist:
            data[relationship.key] = [
                serialize_entity(item, seen) for item in related if id(item) not in seen
            ]
        elif id(related) not in seen:
            data[relationship.key] = serialize_entity(related, seen)
    return data


def data_get(target: Any, path: str, default: Any = None) -> Any:
    """Resolve a dot-notation ``path`` against nested mappings and objects.

    A mapping that already holds ``path`` as a literal key wins over the
    nested walk.
    """
    if isinstance(target, Mapping) and path in target:
        return target[path]
    current = target
    for segment in path.split("."):
        if current is None:
            return default
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        else:
            current = getattr(current, segment, _MISSING)
        if current is _MISSING:
            return default
    return current


def split_row(row: Any, count_labels: tuple[str, ...] = ()) -> tuple[Any, dict[str, Any]]:
    """Separate the entity from count aggregates selected alongside it.

    A ``Row`` whose first element is not a mapped instance comes from a
    column projection and is returned as a plain mapping.
    """
    if isinstance(row, Row):
        mapping = row._mapping
        if not _is_mapped_instance(row[0]):
            return dict(mapping), {}
        extras = {label: mapping[label] for label in count_labels if label in mapping}
        return row[0], extras
    return row, {}


def _is_mapped_instance(value: Any) -> bool:
    return isinstance(sa_inspect(value, raiseerr=False), InstanceState)


@dataclass(frozen=True)
class OutputRecord:
    attributes: dict[str, Any]
    icons: dict[str, Any] = field(default_factory=dict)
    colors: dict[str, Any] = field(default_factory=dict)
    sizes: dict[str, Any] = field(default_factory=dict)
    descriptions: dict[str, Any] = field(default_factory=dict)
    tooltips: dict[str, Any] = field(default_factory=dict)
    urls: dict[str, Any] = field(default_factory=dict)
    actions: list[dict[str, Any]] = field(default_factory=list)
    group: dict[str, Any] | None = None
    url: str | None = None
    badge_color: Any = None

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.attributes)
        data["_icons"] = dict(self.icons)
        data["_colors"] = dict(self.colors)
        data["_sizes"] = dict(self.sizes)
        data["_descriptions"] = dict(self.descriptions)
        data["_actions"] = list(self.actions)
        if self.tooltips:
            data["_tooltips"] = dict(self.tooltips)
        if self.urls:
            data["_urls"] = dict(self.urls)
        if self.group is not None:
            data["_group"] = dict(self.group)
        if self.url is not None:
            data["_url"] = self.url
        if self.badge_color is not None:
            data["_badgeColor"] = self.badge_color
        return data


class RecordProcessor:
    def __init__(self, table: Table, active_group: Group | None = None, count_labels: tuple[str, ...] = ()):
        self.table = table
        self.active_group = active_group
        self.count_labels = count_labels

    def process_many(self, rows: list[Any]) -> list[dict[str, Any]]:
        return [self.process(row).to_dict() for row in rows]

    def process(self, row: Any) -> OutputRecord:
        record, extras = split_row(row, self.count_labels)
        attributes = self._base_attributes(record)
        attributes.update(extras)

        icons: dict[str, Any] = {}
        colors: dict[str, Any] = {}
        sizes: dict[str, Any] = {}
        descriptions: dict[str, Any] = {}
        tooltips: dict[str, Any] = {}
        urls: dict[str, Any] = {}

        for column in self.table.columns:
            name = column.name
            if column.has_state_using:
                state = column.evaluate_state_using(record)
                attributes[name] = convert_value(state)
            else:
                state = self._lookup(attributes, record, name)
                if "." in name and state is not None:
                    attributes[name] = convert_value(state)

            icon = column.evaluate_icon(state, record)
            if icon is not None:
                icons[name] = icon
            color = column.evaluate_color(state, record)
            if color is not None:
                colors[name] = color
            size = column.evaluate_size(state, record)
            if size is not None:
                sizes[name] = size
            description = column.evaluate_description(state, record)
            if description is not None:
                descriptions[name] = description
            tooltip = column.evaluate_tooltip(state, record)
            if tooltip is not None:
                tooltips[name] = tooltip
            url = column.evaluate_url(state, record)
            if url is not None:
                urls[name] = url

            if column.has_format_using:
                formatted = column.evaluate_format_using(state, record)
                if formatted != state:
                    attributes[name] = convert_value(formatted)

        actions = self._resolve_actions(record)
        return OutputRecord(
            attributes=attributes,
            icons=icons,
            colors=colors,
            sizes=sizes,
            descriptions=descriptions,
            tooltips=tooltips,
            urls=urls,
            actions=actions,
            group=self._group_context(attributes, record),
            url=self._record_url(record),
            badge_color=self._badge_color(attributes),
        )

    def _base_attributes(self, record: Any) -> dict[str, Any]:
        if isinstance(record, Mapping):
            return {str(key): convert_value(value) for key, value in record.items()}
        attributes = serialize_entity(record)
        # Action visibility (restore/force delete) reads the timestamp even
        # when no column displays it.
        if supports_soft_deletes(record):
            attributes["deleted_at"] = convert_value(record.deleted_at)
        return attributes

    @staticmethod
    def _lookup(attributes: dict[str, Any], record: Any, name: str) -> Any:
        value = data_get(attributes, name, _MISSING)
        if value is _MISSING:
            # Properties and unloaded attributes only exist on the instance.
            value = data_get(record, name)
        return value

    def _resolve_actions(self, record: Any) -> list[dict[str, Any]]:
        identifier = record_key(record)
        resolved: list[dict[str, Any]] = []
        for action in self.table.record_actions:
            try:
                instance = action.clone()
                instance.resolve_record_context(identifier)
                data = instance.to_dict_with_record(record)
            except Exception:
                logger.warning(
                    "Skipping action %s for record %s",
                    getattr(action, "name", action),
                    identifier,
                    exc_info=True,
                )
                continue
            if data.get("isHidden"):
                continue
            resolved.append(data)
        return resolved

    def _group_context(self, attributes: dict[str, Any], record: Any) -> dict[str, Any] | None:
        group = self.active_group
        if group is None:
            return None
        value = self._lookup(attributes, record, group.column)
        return {
            "column": group.column,
            "value": convert_value(value),
            "title": group.title_for_record(record, value),
            "description": group.description_for_record(record, value),
        }

    def _record_url(self, record: Any) -> str | None:
        table = self.table
        identifier = record_key(record)
        try:
            if table.record_url is not None:
                return table.record_url(record)
            if table.record_url_from_first_action and table.record_actions:
                # The first declared action, whether or not it is visible for this row.
                action = table.record_actions[0].clone()
                action.resolve_record_context(identifier)
                return action.get_url(record)
        except Exception:
            logger.warning("Record URL could not be resolved for %s", identifier, exc_info=True)
        return None

    def _badge_color(self, attributes: dict[str, Any]) -> Any:
        card = self.table.card
        if card is None or not card.has_badge_color or not card.badge_field:
            return None
        value = attributes.get(card.badge_field)
        if value is None:
            return None
        return card.evaluate_badge_color(value)
