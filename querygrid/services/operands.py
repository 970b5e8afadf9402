import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy.sql.sqltypes import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    Integer,
    Interval,
    Numeric,
    String,
)
from sqlalchemy.types import TypeDecorator, TypeEngine

from querygrid.core.errors import SchemaError
from querygrid.schemas.query import OperandType


class ValueKind(str, enum.Enum):
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "bool"
    STRING = "str"
    DATETIME = "datetime"
    DATE = "date"
    ENUM = "enum"


class TypeCategory(str, enum.Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"
    ENUM = "enum"


_RELATIONAL: FrozenSet[OperandType] = frozenset(
    {
        OperandType.EQUALS,
        OperandType.NOT_EQUALS,
        OperandType.GREATER_THAN,
        OperandType.GREATER_THAN_OR_EQUAL,
        OperandType.LESS_THAN,
        OperandType.LESS_THAN_OR_EQUAL,
    }
)
_EQUALITY: FrozenSet[OperandType] = frozenset({OperandType.EQUALS, OperandType.NOT_EQUALS})

VALID_OPERANDS: Dict[TypeCategory, FrozenSet[OperandType]] = {
    TypeCategory.TEXT: frozenset(
        {
            OperandType.EQUALS,
            OperandType.NOT_EQUALS,
            OperandType.CONTAINS,
            OperandType.STARTS_WITH,
            OperandType.ENDS_WITH,
        }
    ),
    TypeCategory.NUMERIC: _RELATIONAL,
    TypeCategory.TEMPORAL: _RELATIONAL,
    TypeCategory.BOOLEAN: _EQUALITY,
    TypeCategory.ENUM: _EQUALITY,
}

KIND_CATEGORIES: Dict[ValueKind, TypeCategory] = {
    ValueKind.INT32: TypeCategory.NUMERIC,
    ValueKind.INT64: TypeCategory.NUMERIC,
    ValueKind.FLOAT: TypeCategory.NUMERIC,
    ValueKind.DECIMAL: TypeCategory.NUMERIC,
    ValueKind.BOOLEAN: TypeCategory.BOOLEAN,
    ValueKind.STRING: TypeCategory.TEXT,
    ValueKind.DATETIME: TypeCategory.TEMPORAL,
    ValueKind.DATE: TypeCategory.TEMPORAL,
    ValueKind.ENUM: TypeCategory.ENUM,
}

# Every supported category has a natural ordering in SQL.
ORDERABLE_CATEGORIES: FrozenSet[TypeCategory] = frozenset(TypeCategory)

_PYTHON_KINDS = {
    bool: ValueKind.BOOLEAN,
    int: ValueKind.INT64,
    float: ValueKind.FLOAT,
    Decimal: ValueKind.DECIMAL,
    str: ValueKind.STRING,
    datetime: ValueKind.DATETIME,
    date: ValueKind.DATE,
}


def _unwrap_type(column_type: TypeEngine) -> Optional[TypeEngine]:
    while isinstance(column_type, TypeDecorator):
        # Interval decorates DateTime on backends without a native interval type.
        if isinstance(column_type, Interval):
            return None
        column_type = column_type.impl_instance
    return column_type


def column_value_kind(column_type: Any) -> Optional[ValueKind]:
    """Semantic kind of a SQLAlchemy column type, ``None`` when unsupported."""
    if isinstance(column_type, type) and issubclass(column_type, TypeEngine):
        column_type = column_type()
    column_type = _unwrap_type(column_type)
    if column_type is None:
        return None
    # Enum subclasses String and BigInteger subclasses Integer: check them first.
    if isinstance(column_type, SAEnum):
        return ValueKind.ENUM
    if isinstance(column_type, Boolean):
        return ValueKind.BOOLEAN
    if isinstance(column_type, BigInteger):
        return ValueKind.INT64
    if isinstance(column_type, Integer):
        return ValueKind.INT32
    if isinstance(column_type, Numeric):
        return ValueKind.DECIMAL if column_type.asdecimal else ValueKind.FLOAT
    if isinstance(column_type, String):
        return ValueKind.STRING
    if isinstance(column_type, DateTime):
        return ValueKind.DATETIME
    if isinstance(column_type, Date):
        return ValueKind.DATE
    return None


def value_kind_of(value_type: Any) -> Optional[ValueKind]:
    """Accepts a ``ValueKind``, a resolved property, a SQLAlchemy type or a python type."""
    if isinstance(value_type, ValueKind):
        return value_type
    if hasattr(value_type, "path") and hasattr(value_type, "kind"):
        return value_type.kind
    if isinstance(value_type, TypeEngine) or (isinstance(value_type, type) and issubclass(value_type, TypeEngine)):
        return column_value_kind(value_type)
    if isinstance(value_type, type):
        if issubclass(value_type, enum.Enum):
            return ValueKind.ENUM
        for python_type, python_kind in _PYTHON_KINDS.items():
            if issubclass(value_type, python_type):
                return python_kind
    return None


def type_name_of(value_type: Any) -> str:
    type_name = getattr(value_type, "type_name", None)
    if isinstance(type_name, str):
        return type_name
    if isinstance(value_type, ValueKind):
        return value_type.value
    if isinstance(value_type, type):
        return value_type.__name__
    return type(value_type).__name__


def category_of(value_type: Any) -> TypeCategory:
    kind = value_kind_of(value_type)
    if kind is None:
        raise SchemaError(f"Unsupported property type '{type_name_of(value_type)}'.")
    return KIND_CATEGORIES[kind]


def validate_operand(operand: OperandType, value_type: Any) -> bool:
    """Whether ``operand`` is legal for ``value_type``.

    Raises ``SchemaError`` when the type itself is not filterable, so a
    ``False`` result always means "supported type, wrong operand".
    """
    kind = value_kind_of(value_type)
    if kind is None:
        raise SchemaError(
            f"Unsupported property type '{type_name_of(value_type)}' for filter operand '{OperandType(operand).value}'."
        )
    return OperandType(operand) in VALID_OPERANDS[KIND_CATEGORIES[kind]]


def ensure_operand(operand: OperandType, prop: Any) -> None:
    if not validate_operand(operand, prop):
        path = getattr(prop, "path", type_name_of(prop))
        raise SchemaError(
            f"Operand '{OperandType(operand).value}' is not supported for property '{path}' "
            f"of type '{type_name_of(prop)}'."
        )


def ensure_orderable(prop: Any) -> None:
    kind = value_kind_of(prop)
    path = getattr(prop, "path", type_name_of(prop))
    if kind is None or KIND_CATEGORIES[kind] not in ORDERABLE_CATEGORIES:
        raise SchemaError(f"Property '{path}' of type '{type_name_of(prop)}' cannot be used for sorting.")
