from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PaginationInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    per_page: int
    current_page: int
    last_page: int
    from_: int | None = Field(default=None, alias="from")
    to: int | None = None


class TableSummary(BaseModel):
    table_key: str
    url: str


class TableRecordsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table_key: str
    records: list[dict[str, Any]]
    pagination: PaginationInfo | None = None
    active_group: str | None = Field(default=None, alias="activeGroup")


class TableEnvelopeResponse(BaseModel):
    """Full table envelope; configuration keys pass through untouched."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    table_key: str
    records: list[dict[str, Any]]
    pagination: PaginationInfo | None = None
    active_group: str | None = Field(default=None, alias="activeGroup")
    summaries: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
