from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

GroupTextCallback = Callable[[Any, Any], Any]


def _record_attribute(record: Any, attribute: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(attribute)
    return getattr(record, attribute, None)


@dataclass(eq=False)
class Group:
    """Clusters table rows by a column.

    Titles and descriptions are derived per record: callback first, then the
    configured record attribute, then (titles only) the stringified value.
    """

    column: str
    label: str | None = None
    collapsible: bool = True
    title_using: GroupTextCallback | None = None
    description_using: GroupTextCallback | None = None
    title_attribute: str | None = None
    description_attribute: str | None = None
    order_query: bool = True

    def should_order_query(self) -> bool:
        return self.order_query

    def get_label(self) -> str:
        return self.label or self.column.replace("_", " ").capitalize()

    def title_for_record(self, record: Any, value: Any) -> str:
        if self.title_using is not None:
            return self.title_using(record, value)
        if self.title_attribute:
            title = _record_attribute(record, self.title_attribute)
            if title is not None:
                return title
        return "" if value is None else str(value)

    def description_for_record(self, record: Any, value: Any) -> str | None:
        if self.description_using is not None:
            return self.description_using(record, value)
        if self.description_attribute:
            return _record_attribute(record, self.description_attribute)
        return None

    def to_props(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "label": self.get_label(),
            "collapsible": self.collapsible,
            "titleAttribute": self.title_attribute,
            "descriptionAttribute": self.description_attribute,
        }
