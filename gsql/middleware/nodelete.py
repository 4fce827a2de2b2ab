"""Middleware that refuses every DELETE statement."""

from __future__ import annotations

from ..errors import GsqlError
from ..query import Handler, Middleware, QueryContext, QueryResult, QueryType


class MiddlewareBuilder:
    """Builds a middleware that blocks DELETE statements."""

    def build(self) -> Middleware:
        def middleware(next_handler: Handler) -> Handler:
            def handler(qc: QueryContext) -> QueryResult:
                if qc.type == QueryType.DELETE:
                    return QueryResult(error=GsqlError("no Delete"))
                return next_handler(qc)

            return handler

        return middleware