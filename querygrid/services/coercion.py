import enum
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from querygrid.core.errors import SchemaError, ValueParseError
from querygrid.services.operands import ValueKind, type_name_of, value_kind_of

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INT_RANGES = {
    ValueKind.INT32: (-(2**31), 2**31 - 1),
    ValueKind.INT64: (-(2**63), 2**63 - 1),
}


def _bad_literal(type_name: str, literal: Any) -> ValueParseError:
    return ValueParseError(type_name, str(literal))


def _coerce_int(kind: ValueKind, literal: str) -> int:
    text = literal.strip()
    if not _INT_RE.fullmatch(text):
        raise _bad_literal(kind.value, literal)
    value = int(text)
    low, high = _INT_RANGES[kind]
    if not low <= value <= high:
        raise _bad_literal(kind.value, literal)
    return value


def _coerce_float(literal: str) -> float:
    text = literal.strip()
    if not _DECIMAL_RE.fullmatch(text):
        raise _bad_literal(ValueKind.FLOAT.value, literal)
    value = float(text)
    if value in (float("inf"), float("-inf")):
        raise _bad_literal(ValueKind.FLOAT.value, literal)
    return value


def _coerce_decimal(literal: str) -> Decimal:
    text = literal.strip()
    if not _DECIMAL_RE.fullmatch(text):
        raise _bad_literal(ValueKind.DECIMAL.value, literal)
    try:
        return Decimal(text)
    except InvalidOperation:
        raise _bad_literal(ValueKind.DECIMAL.value, literal)


def _coerce_bool(literal: str) -> bool:
    text = literal.strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    raise _bad_literal(ValueKind.BOOLEAN.value, literal)


def _coerce_datetime(literal: str, column_type: Any = None) -> datetime:
    text = literal.strip()
    if not text:
        raise _bad_literal(ValueKind.DATETIME.value, literal)
    try:
        if "T" not in text and " " not in text and len(text) == 10:
            # Date-only literal for a timestamp column -> start of the day.
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise _bad_literal(ValueKind.DATETIME.value, literal)
    column_is_aware = bool(getattr(column_type, "timezone", False))
    if column_is_aware and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    elif not column_is_aware and parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _coerce_date(literal: str) -> date:
    text = literal.strip()
    if not text:
        raise _bad_literal(ValueKind.DATE.value, literal)
    try:
        # Accept either YYYY-MM-DD or full ISO datetime and take its date part.
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_literal(ValueKind.DATE.value, literal)


def _coerce_enum(literal: str, column_type: Any = None, enum_class: Optional[type] = None) -> Any:
    text = literal.strip()
    enum_class = enum_class or getattr(column_type, "enum_class", None)
    if enum_class is not None:
        for member in enum_class:
            if member.name.lower() == text.lower():
                return member
        raise _bad_literal(enum_class.__name__, literal)
    for name in getattr(column_type, "enums", None) or ():
        if name.lower() == text.lower():
            return name
    raise _bad_literal("enum", literal)


def coerce_literal(target: Any, literal: Any, column_type: Any = None) -> Any:
    """Converts a filter literal to the native value of ``target``.

    ``target`` is anything ``value_kind_of`` understands: a ``ValueKind``, a
    python type, a SQLAlchemy type or a resolved property (whose column type
    then decides timezone handling and enum members).
    """
    kind = value_kind_of(target)
    if kind is None:
        raise SchemaError(f"Type '{type_name_of(target)}' is not supported for filtering.")
    if literal is None:
        raise _bad_literal(type_name_of(target), literal)
    if not isinstance(literal, str):
        literal = str(literal)
    if column_type is None:
        column_type = getattr(target, "column_type", None)

    if kind in (ValueKind.INT32, ValueKind.INT64):
        return _coerce_int(kind, literal)
    if kind is ValueKind.FLOAT:
        return _coerce_float(literal)
    if kind is ValueKind.DECIMAL:
        return _coerce_decimal(literal)
    if kind is ValueKind.BOOLEAN:
        return _coerce_bool(literal)
    if kind is ValueKind.STRING:
        return literal
    if kind is ValueKind.DATETIME:
        return _coerce_datetime(literal, column_type)
    if kind is ValueKind.DATE:
        return _coerce_date(literal)
    enum_class = target if isinstance(target, type) and issubclass(target, enum.Enum) else None
    return _coerce_enum(literal, column_type, enum_class)


def coerce_value(prop, literal: str) -> Any:
    return coerce_literal(prop, literal, prop.column_type)
