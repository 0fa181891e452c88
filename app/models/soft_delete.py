"""Soft-delete support for ORM models.

Models that mix in :class:`SoftDeleteMixin` are hidden from every ORM SELECT
once they carry a ``deleted_at`` timestamp. The exclusion is a session-wide
scope installed through ``do_orm_execute``; statements executed with
``execution_options(include_deleted=True)`` see trashed rows as well.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, event
from sqlalchemy.orm import Mapped, ORMExecuteState, Session, mapped_column, with_loader_criteria

INCLUDE_DELETED_OPTION = "include_deleted"


class SoftDeleteMixin:
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    def trashed(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = datetime.now(UTC)

    def restore(self) -> None:
        self.deleted_at = None


def supports_soft_deletes(model_or_instance) -> bool:
    model = model_or_instance if isinstance(model_or_instance, type) else type(model_or_instance)
    return issubclass(model, SoftDeleteMixin)


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.execution_options.get(INCLUDE_DELETED_OPTION, False)
    ):
        return
    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            SoftDeleteMixin,
            lambda cls: cls.deleted_at.is_(None),
            include_aliases=True,
        )
    )
