"""Translate mapping-style queries into SQLAlchemy expressions.

Filters are plain mappings so repositories can be driven from route
parameters, tests and scripts alike:

    {"email": {"startsWith": "test-"}}
    {"published": True, "authorId": user_id}
    {"user": {"email": "a@x.com"}}                  # to-one relation
    {"posts": {"some": {"published": True}}}        # to-many relation
    {"OR": [{"name": "Ann"}, {"name": "Bob"}]}
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import ColumnElement, and_, inspect, not_, or_, true
from sqlalchemy.orm import RelationshipProperty, selectinload
from sqlalchemy.orm.interfaces import LoaderOption

Where = Mapping[str, Any]

_SCALAR_OPERATORS = {
    "equals": lambda col, v: col.is_(None) if v is None else col == v,
    "not": lambda col, v: col.is_not(None) if v is None else col != v,
    "in": lambda col, v: col.in_(list(v)),
    "notIn": lambda col, v: col.not_in(list(v)),
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "contains": lambda col, v: col.contains(v, autoescape=True),
    "startsWith": lambda col, v: col.startswith(v, autoescape=True),
    "endsWith": lambda col, v: col.endswith(v, autoescape=True),
}


def _relationship(model: type, name: str) -> RelationshipProperty | None:
    return inspect(model).relationships.get(name)


def _column(model: type, name: str):
    mapper = inspect(model)
    if name not in mapper.column_attrs:
        raise ValueError(f"Unknown field {name!r} on {model.__name__}")
    return getattr(model, name)


def _scalar_condition(model: type, name: str, value: Any) -> ColumnElement[bool]:
    column = _column(model, name)
    if not isinstance(value, Mapping):
        return _SCALAR_OPERATORS["equals"](column, value)

    parts = []
    for op, operand in value.items():
        try:
            build = _SCALAR_OPERATORS[op]
        except KeyError:
            raise ValueError(f"Unknown filter operator {op!r} for {model.__name__}.{name}") from None
        parts.append(build(column, operand))
    return and_(true(), *parts)


def _relation_condition(model: type, rel: RelationshipProperty, value: Any) -> ColumnElement[bool]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Relation filter {rel.key!r} on {model.__name__} must be a mapping")

    attr = getattr(model, rel.key)
    target = rel.mapper.class_

    if not rel.uselist:
        return attr.has(build_where(target, value))

    parts = []
    for op, nested in value.items():
        if op == "some":
            parts.append(attr.any(build_where(target, nested)))
        elif op == "none":
            parts.append(not_(attr.any(build_where(target, nested))))
        elif op == "every":
            parts.append(not_(attr.any(not_(build_where(target, nested)))))
        else:
            raise ValueError(f"Unknown relation operator {op!r} for {model.__name__}.{rel.key}")
    return and_(true(), *parts)


def build_where(model: type, where: Where | None) -> ColumnElement[bool]:
    """Build a single boolean expression for a mapping-style filter.

    Raises:
        ValueError: If a field, relation or operator is unknown.
    """
    if not where:
        return true()

    parts: list[ColumnElement[bool]] = []
    for key, value in where.items():
        if key == "AND":
            parts.append(and_(true(), *(build_where(model, w) for w in value)))
        elif key == "OR":
            parts.append(or_(*(build_where(model, w) for w in value)))
        elif key == "NOT":
            parts.append(not_(build_where(model, value)))
        elif (rel := _relationship(model, key)) is not None:
            parts.append(_relation_condition(model, rel, value))
        else:
            parts.append(_scalar_condition(model, key, value))
    return and_(true(), *parts)


def build_include(model: type, include: Mapping[str, bool] | None) -> list[LoaderOption]:
    """Eager-load options for the requested relations."""
    options: list[LoaderOption] = []
    for name, enabled in (include or {}).items():
        if not enabled:
            continue
        if _relationship(model, name) is None:
            raise ValueError(f"Unknown relation {name!r} on {model.__name__}")
        options.append(selectinload(getattr(model, name)))
    return options


def build_order_by(
    model: type,
    order_by: Mapping[str, str] | Sequence[Mapping[str, str]] | None,
) -> list[ColumnElement]:
    """Ordering clauses from {"field": "asc"|"desc"} or a list of such mappings."""
    if not order_by:
        return []
    specs = [order_by] if isinstance(order_by, Mapping) else list(order_by)

    clauses = []
    for spec in specs:
        for name, direction in spec.items():
            column = _column(model, name)
            if direction == "asc":
                clauses.append(column.asc())
            elif direction == "desc":
                clauses.append(column.desc())
            else:
                raise ValueError(f"Unknown sort direction {direction!r} for {model.__name__}.{name}")
    return clauses
