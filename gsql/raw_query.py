"""Queries and statements written as raw SQL."""

from __future__ import annotations

from typing import Any

from .errors import GsqlError
from .model import Model
from .query import Query, QueryContext, QueryType, Result
from .session import Core, Session, execute, fetch_one


class RawQuerier:
    """Runs hand-written SQL, filling entities of one class from its rows."""

    def __init__(
        self, session: Session, entity_type: type, sql: str, args: tuple = ()
    ) -> None:
        self.session = session
        self.entity_type = entity_type
        self.sql = sql
        self.args = tuple(args)

    def build(self) -> Query:
        """Return the SQL and its arguments as given."""
        return Query(self.sql, list(self.args))

    def _core(self, model: Model) -> Core:
        base = self.session.core
        return Core(
            model=model,
            dialect=base.dialect,
            creator=base.creator,
            registry=base.registry,
            middlewares=list(base.middlewares),
        )

    def exec(self) -> Result:
        """Run the SQL as a data-changing statement through the middlewares."""
        try:
            model = self.session.core.registry.get(self.entity_type)
        except GsqlError as exc:
            return Result(error=exc)
        outcome = execute(
            self.session,
            self._core(model),
            QueryContext(type=QueryType.RAW, builder=self, model=model),
        )
        if isinstance(outcome.result, Result):
            return outcome.result
        return Result(error=outcome.error)

    def get(self) -> Any:
        """Run the SQL and return an entity filled from its first row."""
        model = self.session.core.registry.get(self.entity_type)
        outcome = fetch_one(
            self.session,
            self._core(model),
            QueryContext(type=QueryType.RAW, builder=self, model=model),
            self.entity_type,
        )
        if outcome.error is not None:
            raise outcome.error
        return outcome.result


def raw_query(session: Session, entity_type: type, sql: str, *args: Any) -> RawQuerier:
    """Prepare raw SQL to run on the session."""
    return RawQuerier(session, entity_type, sql, args)