"""Table actions.

Record actions are cloned once per row before their record context is
resolved, so an :class:`Action` instance configured on a table is never
mutated while serializing records.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.services.tables.evaluation import as_record_evaluator

RECORD_ID_PLACEHOLDER = "{id}"


def record_key(record: Any) -> Any:
    """Primary-key value of an ORM instance or mapping, ``None`` if unknown."""
    if isinstance(record, dict):
        return record.get("id")
    return getattr(record, "id", None)


@dataclass(eq=False)
class Action:
    name: str
    label: str | None = None
    icon: str | None = None
    color: str | None = None
    url: str | Callable[[Any], str | None] | None = None
    open_url_in_new_tab: bool = False
    visible: bool | Callable[[Any], bool] = True
    requires_confirmation: bool = False
    modal_heading: str | None = None
    method: str = "get"

    record_id: Any = None

    def __post_init__(self) -> None:
        self._visible = as_record_evaluator(self.visible)

    def clone(self) -> Action:
        return copy.copy(self)

    def get_label(self) -> str:
        return self.label or self.name.replace("_", " ").title()

    def resolve_record_context(self, record_id: Any) -> None:
        self.record_id = record_id

    def get_url(self, record: Any = None) -> str | None:
        if self.url is None:
            return None
        if callable(self.url):
            return self.url(record)
        if RECORD_ID_PLACEHOLDER in self.url:
            if self.record_id is None:
                return None
            return self.url.replace(RECORD_ID_PLACEHOLDER, str(self.record_id))
        return self.url

    def is_visible(self, record: Any = None) -> bool:
        return bool(self._visible(record))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.get_label(),
            "icon": self.icon,
            "color": self.color,
            "url": None if callable(self.url) else self.get_url(),
            "openUrlInNewTab": self.open_url_in_new_tab,
            "requiresConfirmation": self.requires_confirmation,
            "modalHeading": self.modal_heading,
            "method": self.method,
        }

    def to_dict_with_record(self, record: Any) -> dict[str, Any]:
        data = self.to_dict()
        data["url"] = self.get_url(record)
        data["recordId"] = self.record_id
        data["isHidden"] = not self.is_visible(record)
        return data
