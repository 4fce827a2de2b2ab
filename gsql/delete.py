"""DELETE statements."""

from __future__ import annotations

from typing import Any, Optional

from .builder import Builder
from .query import Query
from .session import Core, Session


class Deleter(Builder):
    """Builds a DELETE on the table of one entity class."""

    def __init__(self, session: Session, entity_type: type) -> None:
        base = session.core
        model = base.registry.register(entity_type)
        super().__init__(
            Core(
                model=model,
                dialect=base.dialect,
                creator=base.creator,
                registry=base.registry,
                middlewares=list(base.middlewares),
            )
        )
        self.session = session
        self.entity_type = entity_type
        self._table_name: Optional[str] = None
        self._where: tuple = ()

    def build(self) -> Query:
        """Render the statement and its arguments."""
        self.reset()
        self.buffer.write("DELETE FROM ")
        table_name = self.model.table_name if self._table_name is None else self._table_name
        self.quote(table_name)
        if self._where:
            self.buffer.write(" WHERE ")
            self.build_predicates(self._where)
        self.buffer.write(";")
        return self._query()

    def where(self, *predicates: Any) -> Deleter:
        """Delete only rows matching the predicates, joined with AND."""
        self._where = predicates
        return self

    def from_(self, table_name: str) -> Deleter:
        """Delete from this table instead of the entity's own table."""
        self._table_name = table_name
        return self