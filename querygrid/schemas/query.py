from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from querygrid.core.config import QueryDefaults, resolve_defaults
from querygrid.core.errors import ArgumentError, DeserializationError, first_validation_message


class OperandType(str, Enum):
    EQUALS = "eq"
    NOT_EQUALS = "neq"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    CONTAINS = "cn"
    STARTS_WITH = "sw"
    ENDS_WITH = "ew"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class LogicalOperator(str, Enum):
    AND = "and"
    OR = "or"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


def _normalize_enum_text(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _literal_text(value: Any) -> Any:
    # Wire payloads sometimes carry numbers or booleans where a literal string is expected.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class _RequestModel(BaseModel):
    """Request-side model whose invalid construction raises ``ArgumentError``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ArgumentError(first_validation_message(exc)) from exc


class QueryFilter(_RequestModel):
    property_path: str = Field(alias="property")
    operand: OperandType
    value: str
    logical_operator: LogicalOperator = Field(default=LogicalOperator.AND, alias="operator")

    @field_validator("property_path", mode="before")
    @classmethod
    def _path_not_empty(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("property cannot be null or empty.")
        return value

    @field_validator("value", mode="before")
    @classmethod
    def _value_not_empty(cls, value: Any) -> Any:
        value = _literal_text(value)
        if value is None or value == "":
            raise ValueError("value cannot be null or empty.")
        return value

    @field_validator("operand", "logical_operator", mode="before")
    @classmethod
    def _normalize_enums(cls, value: Any) -> Any:
        return _normalize_enum_text(value)


class QuerySearch(_RequestModel):
    """Matches one term against several properties.

    The clause is a shorthand for one ``QueryFilter`` per listed property, all
    sharing the same operand and logical operator. Properties keep the order
    in which they were listed; duplicates are dropped.
    """

    term: str
    properties: Tuple[str, ...] = ()
    operand: OperandType = OperandType.CONTAINS
    logical_operator: LogicalOperator = Field(default=LogicalOperator.OR, alias="operator")

    @field_validator("term", mode="before")
    @classmethod
    def _term_not_empty(cls, value: Any) -> Any:
        value = _literal_text(value)
        if value is None or value == "":
            raise ValueError("term cannot be null or empty.")
        return value

    @field_validator("properties", mode="before")
    @classmethod
    def _unique_properties(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        seen: List[str] = []
        for item in value:
            if item is None or (isinstance(item, str) and not item.strip()):
                raise ValueError("property cannot be null or empty.")
            if item not in seen:
                seen.append(item)
        return tuple(seen)

    @field_validator("operand", "logical_operator", mode="before")
    @classmethod
    def _normalize_enums(cls, value: Any) -> Any:
        return _normalize_enum_text(value)

    def with_properties(self, *properties: str) -> "QuerySearch":
        return QuerySearch(
            term=self.term,
            properties=(*self.properties, *properties),
            operand=self.operand,
            logical_operator=self.logical_operator,
        )

    def expand(self) -> List[QueryFilter]:
        return [
            QueryFilter(
                property_path=path,
                operand=self.operand,
                value=self.term,
                logical_operator=self.logical_operator,
            )
            for path in self.properties
        ]


class QuerySort(_RequestModel):
    property_path: str = Field(alias="property")
    ascending: bool = True

    @field_validator("property_path", mode="before")
    @classmethod
    def _path_not_empty(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("property cannot be null or empty.")
        return value


def _context_defaults(info: ValidationInfo) -> QueryDefaults:
    context = info.context or {}
    return resolve_defaults(context.get("defaults"))


class QueryPagination(_RequestModel):
    """Requested page (1-based) and page size, clamped to the configured limits."""

    model_config = ConfigDict(frozen=False)

    rows: int = 0
    page: int = 0

    @model_validator(mode="after")
    def _clamp(self, info: ValidationInfo) -> "QueryPagination":
        defaults = _context_defaults(info)
        if self.rows <= 0:
            self.rows = defaults.DEFAULT_ROWS
        elif self.rows > defaults.MAX_ROWS:
            self.rows = defaults.MAX_ROWS
        if self.page < 1:
            self.page = defaults.DEFAULT_PAGE
        return self

    @classmethod
    def create(cls, rows: int = 0, page: int = 0, defaults: Optional[QueryDefaults] = None) -> "QueryPagination":
        try:
            return cls.model_validate(
                {"rows": rows, "page": page},
                context={"defaults": resolve_defaults(defaults)},
            )
        except ValidationError as exc:
            raise ArgumentError(first_validation_message(exc)) from exc


class QueryModel(_RequestModel):
    """Declarative request: filters, one search clause, sort directives, pagination.

    Filter and sort order is significant. A model built without sort
    directives picks up ``DEFAULT_SORT`` from the active defaults.
    """

    model_config = ConfigDict(frozen=False)

    filters: List[QueryFilter] = Field(default_factory=list)
    search: Optional[QuerySearch] = None
    sort: List[QuerySort] = Field(default_factory=list)
    pagination: QueryPagination

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        defaults = _context_defaults(info)
        if data.get("pagination") is None:
            data["pagination"] = {}
        if not data.get("sort"):
            data["sort"] = [
                {"property": item.property_path, "ascending": item.ascending} for item in defaults.DEFAULT_SORT
            ]
        if data.get("filters") is None:
            data["filters"] = []
        return data

    @classmethod
    def create(
        cls,
        *,
        filters: Optional[Iterable[QueryFilter]] = None,
        search: Optional[QuerySearch] = None,
        sort: Optional[Iterable[QuerySort]] = None,
        pagination: Union[QueryPagination, Dict[str, int], None] = None,
        defaults: Optional[QueryDefaults] = None,
    ) -> "QueryModel":
        payload = {
            "filters": list(filters or []),
            "search": search,
            "sort": list(sort or []),
            "pagination": pagination,
        }
        try:
            return cls.model_validate(payload, context={"defaults": resolve_defaults(defaults)})
        except ValidationError as exc:
            raise ArgumentError(first_validation_message(exc)) from exc

    @classmethod
    def from_payload(cls, payload: Any, defaults: Optional[QueryDefaults] = None) -> "QueryModel":
        if not isinstance(payload, dict):
            raise DeserializationError("Deserialization failure: payload must be a JSON object.")
        context = {"defaults": resolve_defaults(defaults)}
        try:
            return cls.model_validate(payload, context=context)
        except ValidationError as exc:
            raise DeserializationError(first_validation_message(exc)) from exc

    @classmethod
    def from_json(cls, text: Union[str, bytes, None], defaults: Optional[QueryDefaults] = None) -> "QueryModel":
        if text is None or not text.strip():
            raise DeserializationError("Deserialization failure: empty payload.")
        context = {"defaults": resolve_defaults(defaults)}
        try:
            return cls.model_validate_json(text, context=context)
        except ValidationError as exc:
            raise DeserializationError(first_validation_message(exc)) from exc

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def add_filter(self, query_filter: QueryFilter) -> None:
        if not isinstance(query_filter, QueryFilter):
            raise ArgumentError("query_filter cannot be null.")
        self.filters.append(query_filter)

    def add_filters(self, filters: Iterable[QueryFilter]) -> None:
        if filters is None:
            raise ArgumentError("filters cannot be null.")
        for query_filter in filters:
            self.add_filter(query_filter)

    def add_sort(self, sort: QuerySort) -> None:
        if not isinstance(sort, QuerySort):
            raise ArgumentError("sort cannot be null.")
        self.sort.append(sort)

    def add_sorts(self, sorts: Iterable[QuerySort]) -> None:
        if sorts is None:
            raise ArgumentError("sorts cannot be null.")
        for sort in sorts:
            self.add_sort(sort)

    def set_search(self, search: Optional[QuerySearch]) -> None:
        self.search = search

    def clear_filters(self) -> None:
        self.filters.clear()

    def clear_sort(self) -> None:
        self.sort.clear()

    def expanded_filters(self) -> List[QueryFilter]:
        """Explicit filters followed by the search clause, one filter per searched property."""
        expanded = list(self.filters)
        if self.search is not None:
            expanded.extend(self.search.expand())
        return expanded
