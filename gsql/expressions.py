"""Building blocks of queries: columns, values, predicates, tables and joins."""

from __future__ import annotations

import dataclasses
from typing import Any, Optional, Union

OP_EQ = "="
OP_LT = "<"
OP_GT = ">"
OP_NOT = "NOT"
OP_AND = "AND"
OP_OR = "OR"


class Expression:
    """Base of everything that can appear inside a SQL expression."""


@dataclasses.dataclass(frozen=True)
class Value(Expression):
    """A literal bound as a query argument."""

    val: Any


@dataclasses.dataclass(frozen=True)
class Predicate(Expression):
    """A condition: ``left op right``; either side may be absent."""

    left: Optional[Expression] = None
    op: str = ""
    right: Optional[Expression] = None

    def and_(self, right: Predicate) -> Predicate:
        return Predicate(left=self, op=OP_AND, right=right)

    def or_(self, right: Predicate) -> Predicate:
        return Predicate(left=self, op=OP_OR, right=right)


def not_(predicate: Predicate) -> Predicate:
    """Negate a predicate."""
    return Predicate(op=OP_NOT, right=predicate)


def value_of(arg: Any) -> Expression:
    """Keep an expression as it is; wrap anything else as a value."""
    return arg if isinstance(arg, Expression) else Value(arg)


@dataclasses.dataclass(frozen=True)
class Column(Expression):
    """A field of the queried entity, or of a given table."""

    name: str
    alias: str = ""
    table: Optional[TableReference] = None

    def eq(self, arg: Any) -> Predicate:
        return Predicate(left=self, op=OP_EQ, right=value_of(arg))

    def as_(self, alias: str) -> Column:
        return Column(name=self.name, alias=alias, table=self.table)


def col(name: str) -> Column:
    """Refer to a field of the queried entity by name."""
    return Column(name)


@dataclasses.dataclass(frozen=True)
class RawExpr(Expression):
    """A piece of SQL written by hand, with its own arguments."""

    raw: str
    args: tuple = ()

    def as_predicate(self) -> Predicate:
        return Predicate(left=self)


def raw(expr: str, *args: Any) -> RawExpr:
    """Create a raw SQL expression."""
    return RawExpr(expr, args)


@dataclasses.dataclass(frozen=True)
class Aggregate:
    """An aggregate function applied to one field."""

    fn: str
    arg: str
    alias: str = ""

    def as_(self, alias: str) -> Aggregate:
        return Aggregate(fn=self.fn, arg=self.arg, alias=alias)


def avg(col: str) -> Aggregate:
    return Aggregate("AVG", col)


def sum_(col: str) -> Aggregate:
    return Aggregate("SUM", col)


def count(col: str) -> Aggregate:
    return Aggregate("COUNT", col)


def max_(col: str) -> Aggregate:
    return Aggregate("MAX", col)


def min_(col: str) -> Aggregate:
    return Aggregate("MIN", col)


@dataclasses.dataclass(frozen=True)
class Assignment:
    """``column = value`` in an update clause."""

    column: str
    value: Expression


def assign(col: str, val: Any) -> Assignment:
    """Assign a value, or an expression, to a field."""
    return Assignment(col, value_of(val))


@dataclasses.dataclass(frozen=True)
class Table:
    """An entity used as a table, optionally aliased."""

    entity: Any
    alias: str = ""

    def as_(self, alias: str) -> Table:
        return Table(entity=self.entity, alias=alias)

    def c(self, name: str) -> Column:
        return Column(name=name, table=self)

    def join(self, right: TableReference) -> JoinBuilder:
        return JoinBuilder(self, right, "JOIN")

    def left_join(self, right: TableReference) -> JoinBuilder:
        return JoinBuilder(self, right, "LEFT JOIN")

    def right_join(self, right: TableReference) -> JoinBuilder:
        return JoinBuilder(self, right, "RIGHT JOIN")


def table_of(entity: Any) -> Table:
    """Use an entity, or its class, as a table."""
    return Table(entity)


@dataclasses.dataclass(frozen=True)
class Join:
    """Two table references joined with ON predicates or USING columns."""

    left: TableReference
    right: TableReference
    typ: str
    on: tuple = ()
    using: tuple = ()

    def join(self, right: TableReference) -> JoinBuilder:
        return JoinBuilder(self, right, "JOIN")

    def left_join(self, right: TableReference) -> JoinBuilder:
        return JoinBuilder(self, right, "LEFT JOIN")

    def right_join(self, right: TableReference) -> JoinBuilder:
        return JoinBuilder(self, right, "RIGHT JOIN")


@dataclasses.dataclass(frozen=True)
class JoinBuilder:
    """A join waiting for its ON or USING clause."""

    left: TableReference
    right: TableReference
    typ: str

    def on(self, *predicates: Predicate) -> Join:
        return Join(self.left, self.right, self.typ, on=predicates)

    def using(self, *columns: str) -> Join:
        return Join(self.left, self.right, self.typ, using=columns)


TableReference = Union[Table, Join]