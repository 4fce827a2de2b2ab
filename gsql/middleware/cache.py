"""Placeholder for a result cache; currently passes every query through."""

from __future__ import annotations

from ..query import Handler, Middleware, QueryContext, QueryResult


class MiddlewareBuilder:
    """Builds a middleware that hands every query to the next handler unchanged."""

    def build(self) -> Middleware:
        def middleware(next_handler: Handler) -> Handler:
            def handler(qc: QueryContext) -> QueryResult:
                return next_handler(qc)

            return handler

        return middleware