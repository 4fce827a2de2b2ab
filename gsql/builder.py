"""SQL text assembly shared by the statement builders, and the SQL dialects."""

from __future__ import annotations

import abc
import dataclasses
import io
from collections.abc import Callable, Sequence
from functools import reduce
from typing import TYPE_CHECKING, Any

from .errors import (
    InvalidExpressionError,
    UnknownFieldError,
    UnsupportedAssignableError,
    UnsupportedTableError,
)
from .expressions import Assignment, Column, Expression, Predicate, RawExpr, Table, Value
from .model import Field
from .query import Query

if TYPE_CHECKING:
    from .session import Core


@dataclasses.dataclass(frozen=True)
class Upsert:
    """What to do when an insert meets an existing row."""

    assigns: tuple = ()
    conflict_columns: tuple = ()


class Builder:
    """Accumulates SQL text and its bound arguments for one statement."""

    def __init__(self, core: Core) -> None:
        self.core = core
        self.model = core.model
        self.registry = core.registry
        self.dialect = core.dialect
        self.quoter = core.dialect.quoter
        self.buffer = io.StringIO()
        self.args: list[Any] = []

    def quote(self, name: str) -> None:
        """Write a name enclosed in the dialect's quote character."""
        self.buffer.write(f"{self.quoter}{name}{self.quoter}")

    def build_column(self, column: Column) -> None:
        """Write a column reference, with its table alias and its own alias."""
        table = column.table
        if table is None:
            model = self.model
        elif isinstance(table, Table):
            model = self.registry.get(table.entity)
        else:
            raise UnsupportedTableError(column.name)
        field = model.field_map.get(column.name)
        if field is None:
            raise UnknownFieldError(column.name)
        if isinstance(table, Table) and table.alias:
            self.quote(table.alias)
            self.buffer.write(".")
        self.quote(field.column)
        if column.alias:
            self.buffer.write(" AS ")
            self.quote(column.alias)

    def add_args(self, *args: Any) -> None:
        """Append bound arguments in the order they appear in the SQL."""
        self.args.extend(args)

    def build_predicates(self, predicates: Sequence[Predicate]) -> None:
        """Write the predicates joined with AND."""
        if not predicates:
            raise ValueError("no predicates to build")
        self.build_expression(reduce(Predicate.and_, predicates))

    def build_expression(self, expr: Expression | None) -> None:
        """Write an expression, binding its values as arguments."""
        if expr is None:
            return
        if isinstance(expr, Predicate):
            self._build_operand(expr.left)
            if expr.op:
                self.buffer.write(f" {expr.op} ")
            self._build_operand(expr.right)
        elif isinstance(expr, Column):
            self.build_column(dataclasses.replace(expr, alias=""))
        elif isinstance(expr, Value):
            self.buffer.write("?")
            self.add_args(expr.val)
        elif isinstance(expr, RawExpr):
            self.buffer.write(f"({expr.raw})")
            self.add_args(*expr.args)
        else:
            raise InvalidExpressionError()

    def _build_operand(self, expr: Expression | None) -> None:
        if isinstance(expr, Predicate):
            self.buffer.write("(")
            self.build_expression(expr)
            self.buffer.write(")")
        else:
            self.build_expression(expr)

    def reset(self) -> None:
        """Forget the SQL text and arguments written so far."""
        self.buffer = io.StringIO()
        self.args = []

    def _query(self) -> Query:
        return Query(self.buffer.getvalue(), list(self.args))


def _model_field(builder: Builder, name: str) -> Field:
    field = builder.model.field_map.get(name)
    if field is None:
        raise UnknownFieldError(name)
    return field


class Dialect(abc.ABC):
    """How one database quotes names and writes upserts."""

    quoter: str

    @abc.abstractmethod
    def build_upsert(self, builder: Builder, upsert: Upsert) -> None:
        """Write the conflict clause of an insert."""

    @staticmethod
    def _build_assignments(
        builder: Builder,
        upsert: Upsert,
        render_column: Callable[[Builder, str], None],
    ) -> None:
        for index, assignable in enumerate(upsert.assigns):
            if index:
                builder.buffer.write(",")
            if isinstance(assignable, Assignment):
                field = _model_field(builder, assignable.column)
                builder.quote(field.column)
                builder.buffer.write("=")
                builder.build_expression(assignable.value)
            elif isinstance(assignable, Column):
                field = _model_field(builder, assignable.name)
                builder.quote(field.column)
                render_column(builder, field.column)
            else:
                raise UnsupportedAssignableError(assignable)


class MySQLDialect(Dialect):
    """MySQL: back-quoted names, ON DUPLICATE KEY UPDATE."""

    quoter = "`"

    def build_upsert(self, builder: Builder, upsert: Upsert) -> None:
        builder.buffer.write(" ON DUPLICATE KEY UPDATE ")
        self._build_assignments(builder, upsert, _mysql_values)


def _mysql_values(builder: Builder, column: str) -> None:
    builder.buffer.write("=VALUES(")
    builder.quote(column)
    builder.buffer.write(")")


class SQLiteDialect(Dialect):
    """SQLite: back-quoted names, ON CONFLICT ... DO UPDATE SET."""

    quoter = "`"

    def build_upsert(self, builder: Builder, upsert: Upsert) -> None:
        builder.buffer.write(" ON CONFLICT(")
        for index, name in enumerate(upsert.conflict_columns):
            if index:
                builder.buffer.write(",")
            builder.build_column(Column(name))
        builder.buffer.write(") DO UPDATE SET ")
        self._build_assignments(builder, upsert, _sqlite_excluded)


def _sqlite_excluded(builder: Builder, column: str) -> None:
    builder.buffer.write("=excluded.")
    builder.quote(column)


MYSQL = MySQLDialect()
SQLITE = SQLiteDialect()