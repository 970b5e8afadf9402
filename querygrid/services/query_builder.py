"""Query orchestration: filter, sort, count and shape one request.

``QueryBuilder`` binds a SQLAlchemy ``Query`` over one mapped entity to a
``QueryModel``. Compilation (path resolution, operand checks, literal
coercion, sort validation) happens before anything is sent to the
database, so every ``QueryError`` surfaces without touching the data.

    builder = QueryBuilder(session.query(Employee), payload)
    page = builder.evaluate(EmployeeOut)
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from sqlalchemy.orm import Query

from querygrid.core.config import QueryDefaults, resolve_defaults
from querygrid.core.errors import ArgumentError
from querygrid.schemas.query import (
    LogicalOperator,
    OperandType,
    QueryFilter,
    QueryModel,
    QuerySearch,
    QuerySort,
)
from querygrid.schemas.response import PagedResponse, PaginationInfo
from querygrid.services.expressions import TRUE, Predicate, render
from querygrid.services.pagination import calculate_pagination, page_offset
from querygrid.services.predicate import compile_predicate
from querygrid.services.shaping import projector_for
from querygrid.services.sorting import apply_sort

_LOG = logging.getLogger("querygrid.builder")

ModelSource = Union[QueryModel, Dict[str, Any], str, bytes, None]


def _query_entity(query: Query) -> type:
    descriptions = query.column_descriptions
    if len(descriptions) != 1:
        raise ArgumentError("Query must select exactly one mapped entity.")
    description = descriptions[0]
    entity = description.get("entity")
    # Aliases and column selections compile against a different FROM clause
    # than the mapped class the predicate is rendered for.
    if entity is None or description.get("aliased") or description.get("expr") is not entity:
        raise ArgumentError(
            f"Query must select exactly one mapped entity, not '{description.get('name')}' "
            "as an alias or a column."
        )
    return entity


def _coerce_model(model: ModelSource, defaults: QueryDefaults) -> QueryModel:
    if model is None:
        return QueryModel.create(defaults=defaults)
    if isinstance(model, QueryModel):
        return model
    if isinstance(model, dict):
        return QueryModel.from_payload(model, defaults)
    if isinstance(model, (str, bytes)):
        return QueryModel.from_json(model, defaults)
    raise ArgumentError(f"Unsupported query model type '{type(model).__name__}'.")


class QueryBuilder:
    def __init__(
        self,
        query: Query,
        model: ModelSource = None,
        *,
        entity: Optional[type] = None,
        defaults: Optional[QueryDefaults] = None,
    ):
        if query is None:
            raise ArgumentError("query cannot be null.")
        self._defaults = resolve_defaults(defaults)
        self._query = query
        source_entity = _query_entity(query)
        if entity is not None and entity is not source_entity:
            raise ArgumentError(
                f"Entity '{entity.__name__}' does not match the queried entity '{source_entity.__name__}'."
            )
        self._entity = source_entity
        self._model = _coerce_model(model, self._defaults)

    @property
    def query(self) -> Query:
        return self._query

    @property
    def model(self) -> QueryModel:
        return self._model

    @property
    def entity(self) -> type:
        return self._entity

    def predicate(self) -> Predicate:
        return compile_predicate(self._entity, self._model.filters, self._model.search)

    def _filtered_query(self) -> Query:
        predicate = self.predicate()
        if predicate is TRUE:
            return self._query
        return self._query.filter(render(predicate))

    def build_query(self) -> Query:
        """Filtered and sorted query; nothing is executed."""
        return apply_sort(self._filtered_query(), self._entity, self._model.sort)

    def pagination_info(self) -> PaginationInfo:
        filtered = self._filtered_query()
        return self._pagination_for(filtered)

    def _pagination_for(self, filtered: Query) -> PaginationInfo:
        pagination = self._model.pagination
        total_count = filtered.count()
        info = calculate_pagination(total_count, pagination.rows, pagination.page)
        _LOG.debug(
            "pagination for %s: page=%s rows=%s total=%s pages=%s",
            self._entity.__name__,
            info.current_page,
            info.page_size,
            info.total_count,
            info.total_pages,
        )
        return info

    def evaluate(self, shape: Optional[Any] = None) -> PagedResponse:
        """Runs the query and returns one page of shaped rows plus pagination metadata.

        The total count covers every filtered row regardless of the page size.
        Rows are limited to the requested page unless ``SLICE_RESULTS`` is off.
        """
        projector = projector_for(shape)
        filtered = self._filtered_query()
        ordered = apply_sort(filtered, self._entity, self._model.sort)

        info = self._pagination_for(filtered)
        if self._defaults.SLICE_RESULTS:
            pagination = self._model.pagination
            # A page past the end is served as the last page.
            page = min(pagination.page, max(info.total_pages, 1))
            ordered = ordered.offset(page_offset(page, pagination.rows)).limit(pagination.rows)

        data = [projector(row) for row in ordered]
        return PagedResponse[Any](data=data, pagination=info)

    def and_(self, property_path: str, operand: OperandType, value: str) -> "QueryBuilder":
        self._model.add_filter(
            QueryFilter(
                property_path=property_path,
                operand=operand,
                value=value,
                logical_operator=LogicalOperator.AND,
            )
        )
        return self

    def or_(self, property_path: str, operand: OperandType, value: str) -> "QueryBuilder":
        self._model.add_filter(
            QueryFilter(
                property_path=property_path,
                operand=operand,
                value=value,
                logical_operator=LogicalOperator.OR,
            )
        )
        return self

    def search(
        self,
        properties: Iterable[str],
        term: str,
        logical_operator: LogicalOperator = LogicalOperator.OR,
        operand: OperandType = OperandType.CONTAINS,
    ) -> "QueryBuilder":
        self._model.set_search(
            QuerySearch(
                term=term,
                properties=list(properties or []),
                operand=operand,
                logical_operator=logical_operator,
            )
        )
        return self

    def sort_by(self, property_path: str, ascending: bool = True, set_primary: bool = True) -> "QueryBuilder":
        """Adds a sort directive; ``set_primary`` drops the directives added before."""
        if set_primary:
            self._model.clear_sort()
        self._model.add_sort(QuerySort(property_path=property_path, ascending=ascending))
        return self


def build_query(
    query: Query,
    model: ModelSource,
    *,
    entity: Optional[type] = None,
    defaults: Optional[QueryDefaults] = None,
) -> Query:
    return QueryBuilder(query, model, entity=entity, defaults=defaults).build_query()


def evaluate_query(
    query: Query,
    model: ModelSource,
    shape: Optional[Any] = None,
    *,
    entity: Optional[type] = None,
    defaults: Optional[QueryDefaults] = None,
) -> PagedResponse:
    return QueryBuilder(query, model, entity=entity, defaults=defaults).evaluate(shape)
