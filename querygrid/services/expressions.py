from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from querygrid.core.errors import ArgumentError
from querygrid.schemas.query import LogicalOperator, OperandType
from querygrid.services.resolver import ResolvedProperty


class _AlwaysTrue:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "TRUE"


TRUE = _AlwaysTrue()


@dataclass(frozen=True)
class Comparison:
    prop: ResolvedProperty
    operand: OperandType
    value: Any


@dataclass(frozen=True)
class Junction:
    operator: LogicalOperator
    left: "Predicate"
    right: "Predicate"


Predicate = Union[_AlwaysTrue, Comparison, Junction]


def _atomic(column, operand: OperandType, value: Any) -> ColumnElement:
    if operand is OperandType.EQUALS:
        return column == value
    if operand is OperandType.NOT_EQUALS:
        # Complement of EQUALS: rows holding NULL are "not equal" as well.
        return or_(column != value, column.is_(None))
    if operand is OperandType.GREATER_THAN:
        return column > value
    if operand is OperandType.GREATER_THAN_OR_EQUAL:
        return column >= value
    if operand is OperandType.LESS_THAN:
        return column < value
    if operand is OperandType.LESS_THAN_OR_EQUAL:
        return column <= value
    if operand is OperandType.CONTAINS:
        return column.contains(value, autoescape=True)
    if operand is OperandType.STARTS_WITH:
        return column.startswith(value, autoescape=True)
    if operand is OperandType.ENDS_WITH:
        return column.endswith(value, autoescape=True)
    raise ArgumentError(f"Unsupported filter type '{operand}'.")


def _render_comparison(node: Comparison) -> ColumnElement:
    clause = _atomic(node.prop.attribute, node.operand, node.value)
    # Each relationship hop wraps the inner criterion in EXISTS (has()).
    for hop in reversed(node.prop.hops):
        clause = hop.attribute.has(clause)
    return clause


def render(predicate: Predicate) -> ColumnElement:
    """Renders a predicate as a SQLAlchemy boolean clause."""
    if predicate is TRUE:
        return true()
    if isinstance(predicate, Comparison):
        return _render_comparison(predicate)
    if isinstance(predicate, Junction):
        left = render(predicate.left)
        right = render(predicate.right)
        if predicate.operator is LogicalOperator.AND:
            return and_(left, right)
        if predicate.operator is LogicalOperator.OR:
            return or_(left, right)
        raise ArgumentError(f"Unsupported logical operator '{predicate.operator}'.")
    raise ArgumentError(f"Unsupported predicate node '{type(predicate).__name__}'.")


def describe(predicate: Predicate) -> str:
    """Readable infix form, parenthesised the way the predicate folds."""
    if predicate is TRUE:
        return "TRUE"
    if isinstance(predicate, Comparison):
        return f"{predicate.prop.path} {predicate.operand.value} {predicate.value!r}"
    if isinstance(predicate, Junction):
        return f"({describe(predicate.left)} {predicate.operator.value.upper()} {describe(predicate.right)})"
    return repr(predicate)
