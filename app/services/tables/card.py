from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from app.services.tables.columns import Column

BadgeColorCallback = Callable[[Any], Any]


@dataclass(eq=False)
class Card:
    """Grid-view card layout for table records."""

    style: str = "simple"
    columns: list[Column] = field(default_factory=list)
    image: str | None = None
    hoverable: bool = True
    aspect_ratio: str | None = None
    image_field: str | None = None
    title_field: str | None = None
    description_field: str | None = None
    price_field: str | None = None
    badge_field: str | None = None
    badge_color: BadgeColorCallback | None = None
    show_image: bool = True
    image_position: str = "top"
    padding: str | None = None
    gap: str | None = None
    actions_position: str = "top-right"

    @classmethod
    def product(
        cls,
        image_field: str = "image",
        title_field: str = "name",
        price_field: str = "price",
        description_field: str | None = "description",
        badge_field: str | None = "status",
        **kwargs: Any,
    ) -> Card:
        return cls(
            style="product",
            image_field=image_field,
            title_field=title_field,
            price_field=price_field,
            description_field=description_field,
            badge_field=badge_field,
            aspect_ratio="4/3",
            padding="md",
            gap="sm",
            **kwargs,
        )

    @classmethod
    def simple(
        cls,
        title_field: str = "name",
        description_field: str | None = "description",
        **kwargs: Any,
    ) -> Card:
        return cls(
            style="simple",
            title_field=title_field,
            description_field=description_field,
            show_image=False,
            padding="md",
            gap="sm",
            **kwargs,
        )

    @classmethod
    def media(
        cls,
        image_field: str = "image",
        title_field: str = "name",
        description_field: str | None = "description",
        **kwargs: Any,
    ) -> Card:
        return cls(
            style="media",
            image_field=image_field,
            title_field=title_field,
            description_field=description_field,
            aspect_ratio="16/9",
            image_position="background",
            padding="md",
            gap="sm",
            **kwargs,
        )

    @property
    def has_badge_color(self) -> bool:
        return self.badge_color is not None

    def evaluate_badge_color(self, value: Any) -> Any:
        return self.badge_color(value) if self.badge_color is not None else None

    def to_props(self) -> dict[str, Any]:
        return {
            "component": "Card",
            "style": self.style,
            "columns": [column.to_props() for column in self.columns],
            "image": self.image,
            "hoverable": self.hoverable,
            "aspectRatio": self.aspect_ratio,
            "imageField": self.image_field,
            "titleField": self.title_field,
            "descriptionField": self.description_field,
            "priceField": self.price_field,
            "badgeField": self.badge_field,
            "showImage": self.show_image,
            "imagePosition": self.image_position,
            "padding": self.padding,
            "gap": self.gap,
            "actionsPosition": self.actions_position,
        }
