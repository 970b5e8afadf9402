from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request

from querygrid.core.config import QueryDefaults
from querygrid.core.errors import DeserializationError
from querygrid.schemas.query import QueryModel

_LOG = logging.getLogger("querygrid.api")


def query_model_dependency(defaults: QueryDefaults | None = None) -> Callable[[Request], Awaitable[QueryModel]]:
    """FastAPI dependency reading the JSON request body into a ``QueryModel``.

    An empty body means "no filters": defaults apply to sort and pagination.
    """

    async def _query_model(request: Request) -> QueryModel:
        body = await request.body()
        try:
            return QueryModel.from_json(body if body.strip() else b"{}", defaults)
        except DeserializationError as exc:
            _LOG.warning("rejected query payload on %s: %s", request.url.path, exc.message)
            raise HTTPException(status_code=400, detail=exc.message)

    return _query_model
