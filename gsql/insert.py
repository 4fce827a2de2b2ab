"""INSERT statements, with optional upsert clauses."""

from __future__ import annotations

from typing import Any

from .builder import Builder, Upsert
from .errors import GsqlError, InsertZeroRowError, UnknownFieldError
from .query import Query, QueryContext, QueryType, Result
from .session import Core, Session, execute


class UpsertBuilder:
    """Collects the conflict clause of an insert."""

    def __init__(self, inserter: Inserter) -> None:
        self._inserter = inserter
        self._conflict_columns: tuple = ()

    def conflict_columns(self, *columns: str) -> UpsertBuilder:
        """Fields whose conflict triggers the update (used by SQLite)."""
        self._conflict_columns = columns
        return self

    def update(self, *assigns: Any) -> Inserter:
        """Assignments or columns to update when a conflict occurs."""
        self._inserter._upsert = Upsert(
            assigns=assigns, conflict_columns=self._conflict_columns
        )
        return self._inserter


class Inserter(Builder):
    """Builds and runs an INSERT of entities of one class."""

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
        self._values: tuple = ()
        self._columns: tuple = ()
        self._upsert: Upsert | None = None

    def build(self) -> Query:
        """Render the statement and its arguments."""
        if not self._values:
            raise InsertZeroRowError()
        self.reset()
        self.buffer.write("INSERT INTO ")
        self.quote(self.model.table_name)

        fields = self.model.fields
        if self._columns:
            fields = []
            for name in self._columns:
                field = self.model.field_map.get(name)
                if field is None:
                    raise UnknownFieldError(name)
                fields.append(field)

        self.buffer.write("(")
        for index, field in enumerate(fields):
            if index:
                self.buffer.write(",")
            self.quote(field.column)
        self.buffer.write(")")

        self.buffer.write(" VALUES ")
        for row_index, entity in enumerate(self._values):
            if row_index:
                self.buffer.write(",")
            valuer = self.core.creator(self.model, entity)
            self.buffer.write("(" + ",".join("?" for _ in fields) + ")")
            for field in fields:
                try:
                    self.add_args(valuer.field(field.name))
                except (GsqlError, AttributeError) as exc:
                    raise UnknownFieldError(field.name) from exc

        if self._upsert is not None:
            self.dialect.build_upsert(self, self._upsert)

        self.buffer.write(";")
        return self._query()

    def exec(self) -> Result:
        """Run the insert through the middlewares."""
        outcome = execute(
            self.session,
            self.core,
            QueryContext(type=QueryType.INSERT, builder=self, model=self.model),
        )
        if isinstance(outcome.result, Result):
            return outcome.result
        return Result(error=outcome.error)

    def on_duplicate_key(self) -> UpsertBuilder:
        """Start describing what to do when a row already exists."""
        return UpsertBuilder(self)

    def columns(self, *columns: str) -> Inserter:
        """Insert only these fields."""
        self._columns = columns
        return self

    def values(self, *values: Any) -> Inserter:
        """Entities to insert, one row each."""
        self._values = values
        return self