import logging
from typing import Iterable, List, Optional

from querygrid.schemas.query import QueryFilter, QuerySearch
from querygrid.services.coercion import coerce_value
from querygrid.services.expressions import TRUE, Comparison, Junction, Predicate, describe
from querygrid.services.operands import ensure_operand
from querygrid.services.resolver import resolve_property

_LOG = logging.getLogger("querygrid.predicate")


def expand_filters(filters: Optional[Iterable[QueryFilter]], search: Optional[QuerySearch] = None) -> List[QueryFilter]:
    to_filter = list(filters or [])
    if search is not None:
        to_filter.extend(search.expand())
    return to_filter


def compile_comparison(entity: type, query_filter: QueryFilter) -> Comparison:
    prop = resolve_property(entity, query_filter.property_path)
    ensure_operand(query_filter.operand, prop)
    value = coerce_value(prop, query_filter.value)
    return Comparison(prop=prop, operand=query_filter.operand, value=value)


def compile_predicate(
    entity: type,
    filters: Optional[Iterable[QueryFilter]],
    search: Optional[QuerySearch] = None,
) -> Predicate:
    """Folds the filters (and expanded search clause) into one predicate.

    The fold is strictly left to right: ``((f1 op2 f2) op3 f3) ...`` where
    ``opN`` is the logical operator carried by filter N. There is no AND over
    OR precedence, and the first filter's operator is never read.
    """
    to_filter = expand_filters(filters, search)
    if not to_filter:
        return TRUE

    expression: Optional[Predicate] = None
    for query_filter in to_filter:
        comparison = compile_comparison(entity, query_filter)
        if expression is None:
            expression = comparison
        else:
            expression = Junction(operator=query_filter.logical_operator, left=expression, right=comparison)

    if _LOG.isEnabledFor(logging.DEBUG):
        _LOG.debug("compiled predicate for %s: %s", entity.__name__, describe(expression))
    return expression
