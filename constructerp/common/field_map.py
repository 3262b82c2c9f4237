"""Declarative API ⇄ ORM field mapping.

Every entity declares one ``API_FIELDS`` table (camelCase API name → mapped
attribute). The filter translator and the generic row mapper below both read
that table, so no module renames columns on its own.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional


def field_map(model: Any) -> dict[str, str]:
    """Return the entity's ``API_FIELDS`` table (empty if it declares none)."""
    return getattr(model, "API_FIELDS", {})


def resolve_attribute(model: Any, name: str) -> Optional[str]:
    """Translate an API name (or a plain attribute name) to the mapped attribute."""
    fields = field_map(model)
    if name in fields:
        return fields[name]
    if name in fields.values():
        return name
    return None


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def row_to_dict(
    obj: Any,
    only: Optional[Iterable[str]] = None,
) -> dict[str, Any]:
    """Map an ORM row to a JSON-safe dict keyed by API names.

    *only* restricts the output to the given API names.
    """
    fields = field_map(type(obj))
    wanted = set(only) if only is not None else None
    return {
        api_name: _plain(getattr(obj, attr))
        for api_name, attr in fields.items()
        if wanted is None or api_name in wanted
    }
