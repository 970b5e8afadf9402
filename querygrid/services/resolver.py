"""Dot-path resolution against SQLAlchemy mapped classes.

A mapped class is inspected once and turned into a ``RecordSchema``: the
table of members (column attributes and relationships) a path segment may
name. Paths walk scalar relationships and end on a column, e.g.
``"company.address.street"`` on ``Employee``.

Segments are matched by attribute key first; ``"FirstName"`` or
``"firstName"`` also match a ``first_name`` attribute, so payloads written
for camel-cased clients resolve against snake-cased models.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable

from querygrid.core.errors import ArgumentError, SchemaError
from querygrid.services.operands import ValueKind, column_value_kind

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass(frozen=True)
class SchemaMember:
    key: str
    owner: type
    attribute: Any = field(compare=False, repr=False)
    column_type: Any = field(default=None, compare=False, repr=False)
    kind: Optional[ValueKind] = None
    target: Optional[type] = None
    uselist: bool = False

    @property
    def is_relationship(self) -> bool:
        return self.target is not None

    @property
    def type_name(self) -> str:
        if self.target is not None:
            return f"list[{self.target.__name__}]" if self.uselist else self.target.__name__
        if self.kind is ValueKind.ENUM:
            enum_class = getattr(self.column_type, "enum_class", None)
            return enum_class.__name__ if enum_class is not None else "enum"
        if self.kind is not None:
            return self.kind.value
        return type(self.column_type).__name__


@dataclass(frozen=True)
class RecordSchema:
    entity: type
    members: Dict[str, SchemaMember] = field(compare=False)

    def member(self, segment: str) -> Optional[SchemaMember]:
        found = self.members.get(segment)
        if found is None:
            found = self.members.get(_snake_case(segment))
        return found


@dataclass(frozen=True)
class ResolvedProperty:
    """Typed accessor for ``path`` on ``entity``: relationship hops plus a terminal member."""

    entity: type
    path: str
    hops: Tuple[SchemaMember, ...]
    member: SchemaMember

    @property
    def kind(self) -> Optional[ValueKind]:
        return self.member.kind

    @property
    def column_type(self) -> Any:
        return self.member.column_type

    @property
    def attribute(self) -> Any:
        return self.member.attribute

    @property
    def type_name(self) -> str:
        return self.member.type_name


_SCHEMAS: Dict[type, RecordSchema] = {}
_SCHEMAS_LOCK = Lock()


def _snake_case(segment: str) -> str:
    return _CAMEL_BOUNDARY_RE.sub("_", segment).lower()


def _build_schema(entity: type) -> RecordSchema:
    try:
        mapper = sa_inspect(entity)
    except NoInspectionAvailable:
        raise ArgumentError(f"Type '{getattr(entity, '__name__', entity)}' is not a mapped entity.") from None
    mapper = getattr(mapper, "mapper", mapper)
    members: Dict[str, SchemaMember] = {}
    for prop in mapper.column_attrs:
        column_type = prop.columns[0].type
        members[prop.key] = SchemaMember(
            key=prop.key,
            owner=mapper.class_,
            attribute=getattr(mapper.class_, prop.key),
            column_type=column_type,
            kind=column_value_kind(column_type),
        )
    for prop in mapper.relationships:
        members[prop.key] = SchemaMember(
            key=prop.key,
            owner=mapper.class_,
            attribute=getattr(mapper.class_, prop.key),
            target=prop.mapper.class_,
            uselist=bool(prop.uselist),
        )
    return RecordSchema(entity=mapper.class_, members=members)


def schema_for(entity: type) -> RecordSchema:
    schema = _SCHEMAS.get(entity)
    if schema is not None:
        return schema
    with _SCHEMAS_LOCK:
        schema = _SCHEMAS.get(entity)
        if schema is None:
            schema = _build_schema(entity)
            _SCHEMAS[entity] = schema
    return schema


def resolve_property(entity: type, path: Optional[str]) -> ResolvedProperty:
    if path is None or not str(path).strip():
        raise ArgumentError("Property path cannot be null or empty.")
    segments = str(path).strip().split(".")
    if any(not segment.strip() for segment in segments):
        raise ArgumentError(f"Property path '{path}' contains an empty segment.")

    hops = []
    schema = schema_for(entity)
    current: Optional[SchemaMember] = None
    for segment in segments:
        segment = segment.strip()
        if current is not None:
            # Only scalar relationships expose members of their own.
            if not current.is_relationship or current.uselist:
                raise SchemaError(f"'{segment}' is not a valid property or field of type '{current.type_name}'.")
            hops.append(current)
            schema = schema_for(current.target)
        member = schema.member(segment)
        if member is None:
            raise SchemaError(f"'{segment}' is not a valid property or field of type '{schema.entity.__name__}'.")
        current = member

    return ResolvedProperty(entity=schema_for(entity).entity, path=str(path).strip(), hops=tuple(hops), member=current)
