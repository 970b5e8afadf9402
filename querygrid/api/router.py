from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from querygrid.api.deps import query_model_dependency
from querygrid.core.config import QueryDefaults
from querygrid.core.errors import QueryError
from querygrid.schemas.query import QueryModel
from querygrid.services.query_builder import QueryBuilder
from querygrid.services.shaping import row_to_dict

_LOG = logging.getLogger("querygrid.api")


def create_query_router(
    entity: type,
    get_session: Callable[..., Any],
    *,
    path: str = "/query",
    shape: Any = None,
    defaults: QueryDefaults | None = None,
) -> APIRouter:
    """Router with one ``POST {path}`` endpoint evaluating a query payload against ``entity``.

    ``shape`` defaults to the entity's column values; the response body is
    ``{"pagination": {...}, "data": [...]}``.
    """
    router = APIRouter()
    model_dependency = query_model_dependency(defaults)
    row_shape = shape if shape is not None else row_to_dict

    @router.post(path)
    def query_rows(
        model: QueryModel = Depends(model_dependency),
        db: Session = Depends(get_session),
    ) -> dict[str, Any]:
        try:
            response = QueryBuilder(db.query(entity), model, entity=entity, defaults=defaults).evaluate(row_shape)
        except QueryError as exc:
            _LOG.warning("query on %s rejected: %s", entity.__name__, exc.message)
            raise HTTPException(status_code=400, detail=exc.message)
        return response.to_payload()

    return router


def install_query_error_handlers(app: FastAPI) -> None:
    """Maps ``QueryError`` raised by application endpoints to HTTP 400."""

    @app.exception_handler(QueryError)
    async def _query_error_handler(request: Request, exc: QueryError):
        _LOG.warning("query error on %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=400, content={"detail": exc.message, "error": exc.kind})
