"""SQLAlchemy helpers for resolving table field names against ORM models.

Every resolver returns ``None`` instead of raising when a name cannot be
mapped, so callers can degrade to "skip this step".
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.ext.hybrid import HybridExtensionType
from sqlalchemy.orm import Query, RelationshipDirection, RelationshipProperty


def query_model(query: Query) -> type | None:
    """Return the primary ORM entity selected by ``query``."""
    for description in query.column_descriptions:
        entity = description.get("entity")
        if entity is not None:
            return entity
    return None


def _mapper(model: Any):
    if model is None:
        return None
    return sa_inspect(model, raiseerr=False)


def resolve_column(model: type | None, name: str | None):
    """Map a plain (non-dotted) field name to a column or hybrid expression."""
    if not name or "." in name:
        return None
    mapper = _mapper(model)
    if mapper is None:
        return None
    if name in mapper.column_attrs:
        return getattr(model, name)
    descriptor = mapper.all_orm_descriptors.get(name)
    if descriptor is not None and descriptor.extension_type is HybridExtensionType.HYBRID_PROPERTY:
        return getattr(model, name)
    return None


def resolve_relationship(model: type | None, name: str | None) -> RelationshipProperty | None:
    mapper = _mapper(model)
    if mapper is None or not name:
        return None
    return mapper.relationships.get(name)


def has_column(model: type | None, name: str) -> bool:
    """True when ``name`` is a physical column of the model's table."""
    mapper = _mapper(model)
    if mapper is None:
        return False
    return name in mapper.local_table.c


def is_belongs_to(relationship: RelationshipProperty) -> bool:
    return relationship.direction is RelationshipDirection.MANYTOONE


def is_has_one(relationship: RelationshipProperty) -> bool:
    return relationship.direction is RelationshipDirection.ONETOMANY and not relationship.uselist


def search_expression(model: type | None, name: str, pattern: str):
    """Build a case-insensitive ``LIKE`` condition for ``name``.

    Dotted names (``relation.column``) search through the relationship with
    ``has``/``any``.
    """
    if "." not in name:
        column = resolve_column(model, name)
        return column.ilike(pattern) if column is not None else None

    relation_name, related_name = name.split(".", 1)
    relationship = resolve_relationship(model, relation_name)
    if relationship is None:
        return None
    related_column = resolve_column(relationship.mapper.class_, related_name)
    if related_column is None:
        return None
    attribute = getattr(model, relation_name)
    condition = related_column.ilike(pattern)
    return attribute.any(condition) if relationship.uselist else attribute.has(condition)


def count_label(relation_name: str) -> str:
    return f"{relation_name}_count"


def relationship_count_expression(model: type | None, relation_name: str):
    """Correlated ``COUNT(*)`` subquery for a relationship, labelled ``<relation>_count``."""
    relationship = resolve_relationship(model, relation_name)
    if relationship is None:
        return None
    counted = relationship.secondary if relationship.secondary is not None else relationship.target
    condition = relationship.primaryjoin
    return (
        select(func.count())
        .select_from(counted)
        .where(condition)
        .correlate_except(counted)
        .scalar_subquery()
        .label(count_label(relation_name))
    )
