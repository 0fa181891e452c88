from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Query

from app.services.tables.query_support import query_model, resolve_column

SummaryCallback = Callable[[Query, str], Any]


@dataclass
class Summarizer:
    """Aggregate shown under a column, computed over the filtered query."""

    label: str | None = None
    column: str | None = None
    using: SummaryCallback | None = None
    precision: int | None = None
    money: bool = False
    currency: str | None = None

    def __post_init__(self) -> None:
        if self.using is None and not self._has_builtin_aggregate():
            raise ValueError(f"{self.type} needs a `using` callback")

    def _has_builtin_aggregate(self) -> bool:
        cls = type(self)
        return cls.aggregate is not Summarizer.aggregate or cls.summarize is not Summarizer.summarize

    def aggregate(self, expression):
        return None

    @property
    def type(self) -> str:
        return type(self).__name__

    def summarize(self, query: Query, column: str) -> Any:
        expression = resolve_column(query_model(query), column)
        if expression is None:
            return None
        return query.with_entities(self.aggregate(expression)).order_by(None).scalar()

    def format_result(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, Decimal):
            value = float(value)
        if self.precision is not None:
            value = round(float(value), self.precision)
        if self.money:
            return f"{float(value):,.2f} {self.currency or 'USD'}"
        return value

    def execute(self, query: Query, column: str) -> Any:
        if self.using is not None:
            return self.format_result(self.using(query, column))
        return self.format_result(self.summarize(query, self.column or column))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "label": self.label,
            "column": self.column,
            "precision": self.precision,
            "isMoney": self.money,
            "currency": self.currency,
        }


class Sum(Summarizer):
    def aggregate(self, expression):
        return func.sum(expression)


class Average(Summarizer):
    def aggregate(self, expression):
        return func.avg(expression)


class Count(Summarizer):
    def aggregate(self, expression):
        return func.count(expression)


class Range(Summarizer):
    """Smallest and largest value, reported as ``[min, max]``."""

    def summarize(self, query: Query, column: str) -> Any:
        expression = resolve_column(query_model(query), column)
        if expression is None:
            return None
        low, high = (
            query.with_entities(func.min(expression), func.max(expression)).order_by(None).one()
        )
        return [low, high]

    def format_result(self, value: Any) -> Any:
        if value is None:
            return None
        return [super(Range, self).format_result(item) for item in value]
