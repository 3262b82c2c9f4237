"""Generic filtering and sorting utilities."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Select, and_
from sqlalchemy.orm import ColumnProperty, InstrumentedAttribute

from constructerp.common.field_map import resolve_attribute

_OPERATORS = ("__ilike", "__from", "__to", "__lt", "__in")


# ── Sorting ─────────────────────────────────────────────────────────

def apply_sorting(
    query: Select,
    model: Any,
    sort: Optional[str],
) -> Select:
    """
    Parse a sort string like ``"-submittedAt"`` and apply ORDER BY.

    * Leading ``-`` → DESC; otherwise ASC.
    * Unknown names are ignored rather than passed through as raw SQL.
    """
    if not sort:
        return query

    descending = sort.startswith("-")
    col = _get_column(model, sort.lstrip("-"))
    if col is None:
        return query
    return query.order_by(col.desc() if descending else col.asc())


# ── Generic filtering ──────────────────────────────────────────────

def apply_filters(
    query: Select,
    model: Any,
    filters: dict[str, Any],
) -> Select:
    """
    Apply a dict of filter parameters to a SQLAlchemy ``Select``.

    Keys are API names (``siteId``) or attribute names (``site_id``);
    both resolve through the model's ``API_FIELDS`` table.
    Key suffixes determine the operator:

    ============  ==================
    Suffix        Operator
    ============  ==================
    (none)        ``==``
    ``__ilike``   case-insensitive LIKE (wraps ``%…%``)
    ``__from``    ``>=``
    ``__to``      ``<=``
    ``__lt``      ``<``
    ``__in``      ``IN (…)``
    ============  ==================

    ``None`` values and unknown fields are silently skipped.
    """
    conditions = build_conditions(model, filters)
    if conditions:
        query = query.where(and_(*conditions))
    return query


def build_conditions(model: Any, filters: dict[str, Any]) -> list:
    """Translate *filters* into a list of SQL expressions."""
    conditions: list = []

    for key, value in filters.items():
        if value is None:
            continue

        name, op = _split_operator(key)
        col = _get_column(model, name)
        if col is None:
            continue

        if op == "__ilike":
            conditions.append(col.ilike(f"%{value}%"))
        elif op == "__from":
            conditions.append(col >= value)
        elif op == "__to":
            conditions.append(col <= value)
        elif op == "__lt":
            conditions.append(col < value)
        elif op == "__in":
            conditions.append(col.in_(list(value)))
        else:
            conditions.append(col == value)

    return conditions


# ── Internal helpers ────────────────────────────────────────────────

def _split_operator(key: str) -> tuple[str, str]:
    for op in _OPERATORS:
        if key.endswith(op):
            return key.removesuffix(op), op
    return key, ""


def _get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Resolve *name* to a mapped column attribute, or ``None``."""
    attr = resolve_attribute(model, name) or name
    col = getattr(model, attr, None)
    if not isinstance(col, InstrumentedAttribute):
        return None
    if not isinstance(col.property, ColumnProperty):
        return None
    return col
