"""Built queries, the context handed to middlewares, and statement results."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Callable
from typing import Any, Optional

from .model import Model


class QueryType(str, enum.Enum):
    """The kind of statement being run."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    RAW = "raw"

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass
class Query:
    """SQL text with its bound arguments."""

    sql: str
    args: list = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class QueryContext:
    """A statement on its way through the middleware chain."""

    type: QueryType
    builder: Any
    model: Optional[Model] = None
    _query: Optional[Query] = dataclasses.field(
        default=None, init=False, repr=False, compare=False
    )

    def build_query(self) -> Query:
        """Build the statement once and reuse the result afterwards."""
        if self._query is None:
            self._query = self.builder.build()
        return self._query


@dataclasses.dataclass
class QueryResult:
    """What a handler produced: an entity, a Result, or an error."""

    result: Any = None
    error: Optional[BaseException] = None


@dataclasses.dataclass
class Result:
    """Outcome of a statement that changes data."""

    error: Optional[BaseException] = None
    cursor: Any = None

    def last_insert_id(self) -> int:
        """Row id of the last inserted row; raises the statement's error."""
        if self.error is not None:
            raise self.error
        return self.cursor.lastrowid

    def rows_affected(self) -> int:
        """Number of rows the statement changed; raises the statement's error."""
        if self.error is not None:
            raise self.error
        return self.cursor.rowcount


Handler = Callable[[QueryContext], QueryResult]
Middleware = Callable[[Handler], Handler]