"""SELECT statements: columns, aggregates, joins and WHERE clauses."""

from __future__ import annotations

from typing import Any, Optional

from .builder import Builder
from .errors import NoRowsError, UnsupportedExpressionError, UnsupportedTableError
from .expressions import Aggregate, Column, Join, RawExpr, Table
from .query import Query, QueryContext, QueryType
from .session import Core, Session, fetch_one


class Selector(Builder):
    """Builds and runs a SELECT whose rows fill instances of one entity class.

    The entity class must be constructible without arguments.
    """

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
        self._table: Optional[Any] = None
        self._columns: tuple = ()
        self._where: tuple = ()

    def get(self) -> Any:
        """Run the query through the middlewares and return the first row's entity."""
        result = fetch_one(
            self.session,
            self.core,
            QueryContext(type=QueryType.SELECT, builder=self, model=self.model),
            self.entity_type,
        )
        if result.error is not None:
            raise result.error
        return result.result

    def get_multi(self) -> list:
        """Run the query and return one entity per row; raise if there are none."""
        query = self.build()
        cursor = self.session._query(query.sql, query.args)
        columns = [description[0] for description in cursor.description or ()]
        results = []
        for row in cursor:
            entity = self.entity_type()
            self.core.creator(self.model, entity).set_columns(columns, row)
            results.append(entity)
        if not results:
            raise NoRowsError()
        return results

    def build(self) -> Query:
        """Render the statement and its arguments."""
        self.reset()
        self.buffer.write("SELECT ")
        self._build_columns()
        self.buffer.write(" FROM ")
        self._build_table(self._table)
        if self._where:
            self.buffer.write(" WHERE ")
            self.build_predicates(self._where)
        self.buffer.write(";")
        return self._query()

    def _build_table(self, table: Any) -> None:
        if table is None:
            self.quote(self.model.table_name)
        elif isinstance(table, Table):
            model = self.registry.get(table.entity)
            self.quote(model.table_name)
            if table.alias:
                self.buffer.write(" AS ")
                self.quote(table.alias)
        elif isinstance(table, Join):
            self.buffer.write("(")
            self._build_table(table.left)
            self.buffer.write(f" {table.typ} ")
            self._build_table(table.right)
            if table.using:
                self.buffer.write(" USING (")
                for index, name in enumerate(table.using):
                    if index:
                        self.buffer.write(",")
                    self.build_column(Column(name))
                self.buffer.write(")")
            if table.on:
                self.buffer.write(" ON ")
                self.build_predicates(table.on)
            self.buffer.write(")")
        else:
            raise UnsupportedTableError(table)

    def _build_columns(self) -> None:
        if not self._columns:
            self.buffer.write("*")
            return
        for index, selectable in enumerate(self._columns):
            if index:
                self.buffer.write(",")
            if isinstance(selectable, Column):
                self.build_column(selectable)
            elif isinstance(selectable, Aggregate):
                self.buffer.write(f"{selectable.fn}(")
                self.build_column(Column(selectable.arg))
                self.buffer.write(")")
                if selectable.alias:
                    self.buffer.write(" AS ")
                    self.quote(selectable.alias)
            elif isinstance(selectable, RawExpr):
                self.buffer.write(selectable.raw)
                self.add_args(*selectable.args)
            else:
                raise UnsupportedExpressionError(selectable)

    def from_(self, table: Any) -> Selector:
        """Select from this table or join instead of the entity's own table."""
        self._table = table
        return self

    def select(self, *columns: Any) -> Selector:
        """Select these columns, aggregates or raw expressions instead of ``*``."""
        self._columns = columns
        return self

    def where(self, *predicates: Any) -> Selector:
        """Filter rows by the predicates, joined with AND."""
        self._where = predicates
        return self