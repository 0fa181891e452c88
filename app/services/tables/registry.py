from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.services.tables.table import Table

logger = logging.getLogger(__name__)

TableFactory = Callable[[Session], Table]


class TableRegistry:
    """Maps table keys to factories building a fresh :class:`Table` per request."""

    _tables: dict[str, TableFactory] = {}

    @classmethod
    def register(cls, table_key: str, factory: TableFactory | None = None):
        if not table_key:
            raise ValueError("table_key is required")

        def decorator(func: TableFactory) -> TableFactory:
            if not callable(func):
                raise ValueError(f"Table factory for {table_key} must be callable")
            if table_key in cls._tables and cls._tables[table_key] is not func:
                logger.info("Replacing table registration %s", table_key)
            cls._tables[table_key] = func
            return func

        if factory is not None:
            return decorator(factory)
        return decorator

    @classmethod
    def unregister(cls, table_key: str) -> None:
        cls._tables.pop(table_key, None)

    @classmethod
    def get(cls, table_key: str) -> TableFactory:
        factory = cls._tables.get(table_key)
        if not factory:
            raise HTTPException(status_code=404, detail="Unregistered tableKey")
        return factory

    @classmethod
    def exists(cls, table_key: str) -> bool:
        return table_key in cls._tables

    @classmethod
    def keys(cls) -> list[str]:
        return sorted(cls._tables)

    @classmethod
    def build(cls, table_key: str, db: Session) -> Table:
        return cls.get(table_key)(db)
