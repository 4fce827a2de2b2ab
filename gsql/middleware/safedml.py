"""Middleware that refuses DELETE and UPDATE statements without a WHERE clause."""

from __future__ import annotations

from ..errors import GsqlError
from ..query import Handler, Middleware, QueryContext, QueryResult, QueryType

_PASS_THROUGH = (QueryType.SELECT, QueryType.INSERT)


class MiddlewareBuilder:
    """Builds a middleware guarding against unrestricted data-changing statements."""

    def build(self) -> Middleware:
        def middleware(next_handler: Handler) -> Handler:
            def handler(qc: QueryContext) -> QueryResult:
                if qc.type in _PASS_THROUGH:
                    return next_handler(qc)
                try:
                    query = qc.build_query()
                except Exception as exc:
                    return QueryResult(error=exc)
                if "WHERE" not in query.sql:
                    return QueryResult(
                        error=GsqlError(
                            "gsql: refusing to run a delete or update statement without WHERE"
                        )
                    )
                return next_handler(qc)

            return handler

        return middleware