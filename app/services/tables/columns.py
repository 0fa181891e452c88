"""Column definitions.

A column describes one displayed (or inline-editable) field and owns its
per-record presentation logic. Evaluator settings accept either a static
value or a ``(state, record) -> value`` callable; static values are wrapped
at construction time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from app.services.tables.evaluation import Evaluator, as_evaluator, call_evaluator
from app.services.tables.summarizers import Summarizer

StateGetter = Callable[[Any], Any]

BADGE_PALETTE = {"primary", "secondary", "success", "warning", "danger", "info", "gray"}


def _headline(name: str) -> str:
    return name.split(".")[-1].replace("_", " ").title()


@dataclass(eq=False)
class Column:
    name: str
    label: str | None = None
    sortable: bool = False
    searchable: bool = False
    search_columns: list[str] | None = None
    toggleable: bool = True
    hidden_by_default: bool = False
    state_using: StateGetter | None = None
    format_using: Evaluator | None = None
    description: Any = None
    description_position: str = "below"
    tooltip: Any = None
    url: Any = None
    open_url_in_new_tab: bool = False
    size: Any = None
    alignment: str = "start"
    prefix: str | None = None
    suffix: str | None = None
    grow: bool = False
    visible: bool = True

    component = "Column"

    def __post_init__(self) -> None:
        self.description = as_evaluator(self.description)
        self.tooltip = as_evaluator(self.tooltip)
        self.url = as_evaluator(self.url)
        self.size = as_evaluator(self.size)

    def get_label(self) -> str:
        return self.label or _headline(self.name)

    def searched_columns(self) -> list[str]:
        """Underlying fields matched when searching this column."""
        if not self.searchable:
            return []
        return list(self.search_columns or [self.name])

    @property
    def has_state_using(self) -> bool:
        return self.state_using is not None

    def evaluate_state_using(self, record: Any) -> Any:
        return self.state_using(record) if self.state_using else None

    @property
    def has_format_using(self) -> bool:
        return self.format_using is not None

    def evaluate_format_using(self, state: Any, record: Any = None) -> Any:
        if self.format_using is None:
            return state
        return self.format_using(state, record)

    def evaluate_icon(self, state: Any, record: Any = None) -> str | None:
        return None

    def evaluate_color(self, state: Any, record: Any = None) -> str | None:
        return None

    def evaluate_size(self, state: Any, record: Any = None) -> str | None:
        return call_evaluator(self.size, state, record)

    def evaluate_description(self, state: Any, record: Any = None) -> str | None:
        return call_evaluator(self.description, state, record)

    def evaluate_tooltip(self, state: Any, record: Any = None) -> str | None:
        return call_evaluator(self.tooltip, state, record)

    def evaluate_url(self, state: Any, record: Any = None) -> str | None:
        return call_evaluator(self.url, state, record)

    def to_props(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "name": self.name,
            "label": self.get_label(),
            "visible": self.visible,
            "sortable": self.sortable,
            "searchable": self.searchable,
            "toggleable": self.toggleable,
            "isToggledHiddenByDefault": self.hidden_by_default,
            "descriptionPosition": self.description_position,
            "alignment": self.alignment,
            "hasTooltip": self.tooltip is not None,
            "hasUrl": self.url is not None,
            "openUrlInNewTab": self.open_url_in_new_tab,
            "prefix": self.prefix,
            "suffix": self.suffix,
            "grow": self.grow,
            "hasFormatUsing": self.format_using is not None,
        }


@dataclass(eq=False)
class TextColumn(Column):
    counts: str | None = None
    badge: bool = False
    color: Any = None
    icon: str | None = None
    icon_position: str = "before"
    weight: str | None = None
    limit: int | None = None
    wrap: bool = False
    copyable: bool | str = False
    date_format: str | None = None
    date_time_format: str | None = None
    since: bool = False
    money: str | None = None
    money_divide_by: int = 1
    numeric: Mapping[str, Any] | None = None
    html: bool = False
    separator: str | None = None
    list_with_line_breaks: bool = False
    bulleted: bool = False
    summarizers: list[Summarizer] = field(default_factory=list)

    component = "TextColumn"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.color = as_evaluator(self.color)
        if self.bulleted:
            self.list_with_line_breaks = True

    @property
    def counts_relation(self) -> str | None:
        return self.counts

    def evaluate_color(self, state: Any, record: Any = None) -> str | None:
        return call_evaluator(self.color, state, record)

    def to_props(self) -> dict[str, Any]:
        copyable = self.copyable if isinstance(self.copyable, str) else ("Copy" if self.copyable else None)
        return {
            **super().to_props(),
            "limit": self.limit,
            "wrap": self.wrap,
            "copyable": copyable,
            "badge": self.badge,
            "dateFormat": self.date_format,
            "dateTimeFormat": self.date_time_format,
            "since": self.since,
            "icon": self.icon,
            "iconPosition": self.icon_position,
            "weight": self.weight,
            "moneyFormat": (
                {"currency": self.money, "divideBy": self.money_divide_by} if self.money else None
            ),
            "numericFormat": dict(self.numeric) if self.numeric is not None else None,
            "colorCallback": self.color is not None,
            "html": self.html,
            "separator": self.separator,
            "listWithLineBreaks": self.list_with_line_breaks,
            "bulleted": self.bulleted,
            "summarizers": [summarizer.to_dict() for summarizer in self.summarizers],
        }


@dataclass(eq=False)
class BadgeColumn(TextColumn):
    """Text rendered as a badge.

    ``colors`` maps a colour to the state that selects it
    (``{"success": "active"}``); a bare palette entry in a list acts as the
    fallback colour. A callable receives ``(state, record)``.
    """

    colors: Any = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.badge = True

    def evaluate_color(self, state: Any, record: Any = None) -> str | None:
        color = super().evaluate_color(state, record)
        if color is not None:
            return color
        if callable(self.colors):
            return self.colors(state, record)
        if isinstance(self.colors, Mapping):
            for candidate, condition in self.colors.items():
                if state == condition:
                    return candidate
        elif self.colors:
            for entry in self.colors:
                if isinstance(entry, str) and entry in BADGE_PALETTE:
                    return entry
        return "gray"

    def to_props(self) -> dict[str, Any]:
        colors = self.colors if not callable(self.colors) else None
        return {**super().to_props(), "colors": colors}


@dataclass(eq=False)
class IconColumn(Column):
    icon: Any = None
    color: Any = None
    icon_size: Any = "large"
    boolean: bool = False
    true_icon: Any = None
    false_icon: Any = None
    true_color: Any = None
    false_color: Any = None
    wrap: bool = False

    component = "IconColumn"

    def __post_init__(self) -> None:
        super().__post_init__()
        for attr in ("icon", "color", "icon_size", "true_icon", "false_icon", "true_color", "false_color"):
            setattr(self, attr, as_evaluator(getattr(self, attr)))

    def evaluate_icon(self, state: Any, record: Any = None) -> str | None:
        if self.boolean:
            truthy = bool(state)
            if truthy and self.true_icon is not None:
                return self.true_icon(state, record)
            if not truthy and self.false_icon is not None:
                return self.false_icon(state, record)
            return "CheckCircle" if truthy else "XCircle"
        if self.icon is not None:
            return self.icon(state, record)
        # Without an icon setting the state itself names the icon.
        return state

    def evaluate_color(self, state: Any, record: Any = None) -> str | None:
        if self.boolean:
            truthy = bool(state)
            if truthy and self.true_color is not None:
                return self.true_color(state, record)
            if not truthy and self.false_color is not None:
                return self.false_color(state, record)
            return "success" if truthy else "danger"
        return call_evaluator(self.color, state, record)

    def evaluate_size(self, state: Any, record: Any = None) -> str | None:
        size = super().evaluate_size(state, record)
        if size is not None:
            return size
        return call_evaluator(self.icon_size, state, record)

    def to_props(self) -> dict[str, Any]:
        return {**super().to_props(), "boolean": self.boolean, "wrap": self.wrap}


@dataclass(eq=False)
class BooleanColumn(IconColumn):
    boolean: bool = True


@dataclass(eq=False)
class ImageColumn(Column):
    image_width: Any = None
    image_height: Any = None
    square: bool = False
    circular: bool = False
    stacked: bool = False
    ring: int = 3
    overlap: int = 4
    limit: int | None = None
    limited_remaining_text: bool = False
    limited_remaining_text_size: str = "sm"
    wrap: bool = False
    disk: str | None = None
    default_image_url: str | None = None
    extra_img_attributes: Mapping[str, Any] = field(default_factory=dict)

    component = "ImageColumn"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.ring = max(0, min(8, self.ring))
        self.overlap = max(0, min(8, self.overlap))

    def evaluate_image_width(self, state: Any, record: Any = None):
        if callable(self.image_width):
            return self.image_width(state, record)
        return self.image_width

    def evaluate_image_height(self, state: Any, record: Any = None):
        if callable(self.image_height):
            return self.image_height(state, record)
        return self.image_height

    def to_props(self) -> dict[str, Any]:
        return {
            **super().to_props(),
            "imageWidth": None if callable(self.image_width) else self.image_width,
            "imageHeight": None if callable(self.image_height) else self.image_height,
            "square": self.square,
            "circular": self.circular,
            "stacked": self.stacked,
            "ring": self.ring,
            "overlap": self.overlap,
            "limit": self.limit,
            "limitedRemainingText": self.limited_remaining_text,
            "limitedRemainingTextSize": self.limited_remaining_text_size,
            "wrap": self.wrap,
            "disk": self.disk,
            "defaultImageUrl": self.default_image_url,
            "extraImgAttributes": dict(self.extra_img_attributes),
        }


@dataclass(eq=False)
class ColorColumn(Column):
    copyable: bool = False
    copy_message: str | None = None
    copy_message_duration: int | None = None
    wrap: bool = False
    max_visible: int = 4

    component = "ColorColumn"

    def to_props(self) -> dict[str, Any]:
        return {
            **super().to_props(),
            "copyable": self.copyable,
            "copyMessage": self.copy_message,
            "copyMessageDuration": self.copy_message_duration,
            "wrap": self.wrap,
            "maxVisible": self.max_visible,
        }


@dataclass(eq=False)
class EditableColumn(Column):
    """Base for inline-editable columns."""

    rules: list[str] = field(default_factory=list)

    def to_props(self) -> dict[str, Any]:
        return {**super().to_props(), "rules": list(self.rules), "editable": True}


@dataclass(eq=False)
class SelectColumn(EditableColumn):
    options: Any = field(default_factory=dict)
    native: bool = True
    options_searchable: bool = False
    selectable_placeholder: bool = True

    component = "SelectColumn"

    def get_options(self) -> dict[Any, Any]:
        options = self.options() if callable(self.options) else self.options
        return dict(options or {})

    def to_props(self) -> dict[str, Any]:
        return {
            **super().to_props(),
            "options": self.get_options(),
            "native": self.native,
            "optionsSearchable": self.options_searchable,
            "selectablePlaceholder": self.selectable_placeholder,
        }


@dataclass(eq=False)
class CheckboxColumn(EditableColumn):
    component = "CheckboxColumn"


@dataclass(eq=False)
class ToggleColumn(EditableColumn):
    component = "ToggleColumn"


@dataclass(eq=False)
class TextInputColumn(EditableColumn):
    type: str = "text"
    input_prefix: str | None = None
    input_suffix: str | None = None
    input_prefix_icon: str | None = None
    input_suffix_icon: str | None = None

    component = "TextInputColumn"

    def to_props(self) -> dict[str, Any]:
        return {
            **super().to_props(),
            "type": self.type,
            "inputPrefix": self.input_prefix,
            "inputSuffix": self.input_suffix,
            "prefixIcon": self.input_prefix_icon,
            "suffixIcon": self.input_suffix_icon,
        }
