"""Middleware that logs every statement before it runs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..query import Handler, Middleware, QueryContext, QueryResult

_log = logging.getLogger(__name__)

LogFunc = Callable[[str, list], None]


def _default_log(sql: str, args: list) -> None:
    _log.info("gsql: query: %s, args: %s", sql, args)


class MiddlewareBuilder:
    """Builds a middleware that passes each query's SQL and arguments to a log function."""

    def __init__(self) -> None:
        self._log_func: LogFunc = _default_log

    def log_func(self, fn: LogFunc) -> MiddlewareBuilder:
        """Use fn instead of the package logger."""
        self._log_func = fn
        return self

    def build(self) -> Middleware:
        """Return the logging middleware."""

        def middleware(next_handler: Handler) -> Handler:
            def handler(qc: QueryContext) -> QueryResult:
                try:
                    query: Any = qc.build_query()
                except Exception as exc:
                    return QueryResult(error=exc)
                self._log_func(query.sql, query.args)
                return next_handler(qc)

            return handler

        return middleware