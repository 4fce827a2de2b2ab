"""Middleware that logs statements running longer than a threshold."""

from __future__ import annotations

import datetime
import logging
import time
from collections.abc import Callable

from ..query import Handler, Middleware, QueryContext, QueryResult

_log = logging.getLogger(__name__)

LogFunc = Callable[[str, list], None]


def _default_log(sql: str, args: list) -> None:
    _log.warning("sql: %s, args: %s", sql, args)


class MiddlewareBuilder:
    """Builds a middleware that logs slow statements.

    The threshold is a number of seconds or a timedelta.
    """

    def __init__(self, threshold: float | datetime.timedelta) -> None:
        if isinstance(threshold, datetime.timedelta):
            threshold = threshold.total_seconds()
        self.threshold = float(threshold)
        self._log_func: LogFunc = _default_log

    def log_func(self, fn: LogFunc) -> MiddlewareBuilder:
        """Use fn instead of the package logger."""
        self._log_func = fn
        return self

    def build(self) -> Middleware:
        def middleware(next_handler: Handler) -> Handler:
            def handler(qc: QueryContext) -> QueryResult:
                start = time.perf_counter()
                try:
                    return next_handler(qc)
                finally:
                    if time.perf_counter() - start > self.threshold:
                        try:
                            query = qc.build_query()
                        except Exception:
                            query = None
                        if query is not None:
                            self._log_func(query.sql, query.args)

            return handler

        return middleware