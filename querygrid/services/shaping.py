from __future__ import annotations

import enum
from typing import Any, Callable, Optional

from pydantic import BaseModel
from sqlalchemy.inspection import inspect as sa_inspect

from querygrid.core.errors import ArgumentError


def _column_value(value: Any) -> Any:
    # Enum columns are filtered by member name, rows expose the same name.
    if isinstance(value, enum.Enum):
        return value.name
    return value


def row_to_dict(row: Any) -> dict[str, Any]:
    """Column values of a mapped instance keyed by attribute name.

    Values keep their python types; ``PagedResponse.to_payload`` renders them as JSON.
    """
    mapper = sa_inspect(type(row))
    return {column.key: _column_value(getattr(row, column.key)) for column in mapper.column_attrs}


def projector_for(shape: Optional[Any]) -> Callable[[Any], Any]:
    """Callable applied to every result row.

    ``shape`` may be ``None`` (rows are returned unchanged), a pydantic model
    class (validated from the row's attributes) or any callable.
    """
    if shape is None:
        return lambda row: row
    if isinstance(shape, type) and issubclass(shape, BaseModel):
        return lambda row: shape.model_validate(row, from_attributes=True)
    if callable(shape):
        return shape
    raise ArgumentError(f"Shape must be callable or a pydantic model, got '{type(shape).__name__}'.")
