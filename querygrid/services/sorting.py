import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query, aliased

from querygrid.schemas.query import QuerySort
from querygrid.services.operands import ensure_orderable
from querygrid.services.resolver import ResolvedProperty, resolve_property

_LOG = logging.getLogger("querygrid.sort")


def resolve_sort_keys(entity: type, sorts: Optional[Iterable[QuerySort]]) -> List[Tuple[ResolvedProperty, bool]]:
    keys = []
    for sort in sorts or []:
        prop = resolve_property(entity, sort.property_path)
        ensure_orderable(prop)
        keys.append((prop, sort.ascending))
    return keys


def apply_sort(query: Query, entity: type, sorts: Optional[Iterable[QuerySort]]) -> Query:
    """Orders ``query`` by every directive as one composite key.

    The first directive is the primary key; each later one only breaks ties
    left by the directives before it. All directives are validated before
    the query is touched. Relationship paths are joined once per distinct
    prefix through aliased outer joins.
    """
    keys = resolve_sort_keys(entity, sorts)
    if not keys:
        return query

    aliases: Dict[Tuple[str, ...], object] = {}
    clauses = []
    for prop, ascending in keys:
        target = entity
        prefix: Tuple[str, ...] = ()
        for hop in prop.hops:
            prefix += (hop.key,)
            alias = aliases.get(prefix)
            if alias is None:
                alias = aliased(hop.target)
                query = query.outerjoin(alias, getattr(target, hop.key).of_type(alias))
                aliases[prefix] = alias
            target = alias
        column = getattr(target, prop.member.key)
        clauses.append(asc(column) if ascending else desc(column))
        _LOG.debug("sort key %s %s", prop.path, "asc" if ascending else "desc")
    return query.order_by(*clauses)
