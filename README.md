# gsql

gsql builds SQL statements from Python classes and fills instances of those
classes from result rows. It builds `SELECT` (columns, aggregates, raw
expressions, `WHERE` predicates, joins), `INSERT` (partial columns, upserts
for MySQL and SQLite) and `DELETE`, runs hand-written SQL, and passes every
statement it runs through a chain of middleware.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## A short example

```python
from dataclasses import dataclass

from gsql.builder import SQLITE
from gsql.expressions import col
from gsql.insert import Inserter
from gsql.raw_query import raw_query
from gsql.select import Selector
from gsql.session import open_database, with_dialect


@dataclass
class TestModel:
    Id: int = 0
    FirstName: str = ""
    Age: int = 0


db = open_database(":memory:", with_dialect(SQLITE))
raw_query(db, TestModel,
          "CREATE TABLE test_model (id INTEGER PRIMARY KEY, first_name TEXT, age INTEGER)").exec()

result = Inserter(db, TestModel).values(TestModel(1, "Tom", 18)).exec()
result.rows_affected()          # 1

Selector(db, TestModel).where(col("Id").eq(1)).get()
# TestModel(Id=1, FirstName='Tom', Age=18)
```

Entity classes must be constructible without arguments, since rows are read
into fresh instances.

## Models (`gsql.model`)

`Registry.register(entity, *options)` builds a `Model` for a class (or an
instance of it); `Registry.get(entity)` does the same once and caches the
result by class.

- The entity is a dataclass, or a class with annotated attributes
  (`ClassVar` annotations are skipped). Anything else raises
  `InvalidTypeError`.
- The table name is the class name in snake case (`TestModel` becomes
  `test_model`), unless the entity has a non-empty `__tablename__` attribute.
- Each field maps to a column named after the field in snake case
  (`FirstName` becomes `first_name`; an all-capitals name such as `ID` is
  simply lowered to `id`). A dataclass field can set its column with
  `dataclasses.field(metadata={"orm": "column=first_name_t"})`; an entry
  without exactly one `=` raises `InvalidTagContentError`.
- `with_table_name(name)` and `with_column_name(field, column)` are options
  for `register`; the latter raises `UnknownFieldError` for an unknown field.

`underscore_name(name)` applies the naming rule on its own.

## Expressions (`gsql.expressions`)

```python
from gsql.expressions import assign, avg, col, not_, raw, table_of

adult = col("Age").eq(18)
named = col("FirstName").eq("Tom")

adult.and_(named)                 # (`age` = ?) AND (`first_name` = ?)
adult.or_(named)                  # (`age` = ?) OR (`first_name` = ?)
not_(adult)                       #  NOT (`age` = ?)
raw("`id`<?", 18).as_predicate()  # (`id`<?)
col("Id").eq(raw("`age`+?", 1))   # `id` = (`age`+?)

avg("Age").as_("avg_age")         # AVG(`age`) AS `avg_age`
assign("FirstName", "Jerry")      # used in upserts
```

`avg`, `sum_`, `count`, `max_` and `min_` build aggregates. `value_of(x)`
keeps an expression as it is and wraps anything else as a bound `Value`.

Tables can be aliased and joined with `join`, `left_join` or `right_join`,
completed by `using(*fields)` or `on(*predicates)`; joins can be joined
again:

```python
orders = table_of(Order).as_("t1")
details = table_of(OrderDetail).as_("t2")
joined = orders.join(details).on(orders.c("Id").eq(details.c("OrderId")))
# (`order` AS `t1` JOIN `order_detail` AS `t2` ON `t1`.`id` = `t2`.`order_id`)
```

## Statements

Each builder takes the session and the entity class. `build()` returns a
`Query` with `sql` and `args`.

- `gsql.select.Selector` — `select(...)`, `from_(table_or_join)`,
  `where(*predicates)` (joined with `AND`); `get()` returns the first row's
  entity or raises `NoRowsError`; `get_multi()` returns a list of entities or
  raises `NoRowsError` when there are none.
- `gsql.insert.Inserter` — `values(*entities)`, `columns(*fields)`,
  `on_duplicate_key().conflict_columns(...).update(...)`; `build()` raises
  `InsertZeroRowError` without values; `exec()` returns a `Result`.
  `update(...)` takes `assign(...)` values or columns: a column means “take
  the inserted value”, written `VALUES(...)` in MySQL and `excluded.` in
  SQLite.
- `gsql.delete.Deleter` — `from_(table_name)`, `where(*predicates)`,
  `build()`.
- `gsql.raw_query.raw_query(session, entity_type, sql, *args)` — returns a
  `RawQuerier` with `get()` and `exec()`.

A `Result` (in `gsql.query`) offers `last_insert_id()` and `rows_affected()`;
both raise the error the statement failed with, if any.

Errors found while building (an unknown field, for instance) are raised by
`build()`, `get()` and `get_multi()`, and are carried by the `Result` of
`exec()`.

## Sessions and dialects (`gsql.session`, `gsql.builder`)

- `open_database(dsn, *options)` opens an SQLite database by file name or
  `file:` URI.
- `open_db(connection, *options)` wraps any DB-API connection that accepts
  `?` placeholders.
- Options: `with_dialect(dialect)`, `with_registry(registry)`,
  `with_valuer(creator)` (the default creator is `gsql.valuer.new_valuer`).

The default dialect is MySQL. `gsql.builder` provides `MySQLDialect` and
`SQLiteDialect` and the ready instances `MYSQL` and `SQLITE`; both quote
names with back quotes and differ in how they write upserts.

Statements run on a `DB` outside a transaction are committed at once.
`DB.begin_tx()` returns a `Tx` (statement builders accept it as their
session) with `commit()`, `rollback()` and `rollback_if_not_commit()`; only
one transaction may be open on a `DB` at a time. `DB.do_tx(fn)` calls
`fn(tx)`, commits and returns its result, or rolls back and raises
`FailedToRollbackTxError` wrapping the exception. `DB.wait()` pings the
database, retrying while the connection reports an operational error.

## Errors (`gsql.errors`)

Every error derives from `GsqlError`: `InvalidTypeError`,
`InvalidExpressionError`, `NoRowsError`, `InsertZeroRowError`,
`UnknownFieldError`, `UnknownColumnError`, `InvalidTagContentError`,
`UnsupportedExpressionError`, `UnsupportedTableError`,
`UnsupportedAssignableError` and `FailedToRollbackTxError`. Errors of the
same class with the same arguments compare equal.

## Middleware (`gsql.middleware`)

A middleware takes the next handler and returns a handler; a handler takes a
`QueryContext` and returns a `QueryResult`. Register middleware with
`DB.use(...)`; the first registered is the outermost. Each module offers a
`MiddlewareBuilder` whose `build()` returns the middleware:

- `querylog` passes each statement's SQL and arguments to a log function
  (the package logger by default; replace it with `log_func(fn)`);
- `slowquery` — `MiddlewareBuilder(threshold)`, seconds or a `timedelta` —
  logs statements that take longer, also with `log_func(fn)`;
- `safedml` refuses any statement other than select and insert whose SQL
  has no `WHERE`;
- `nodelete` refuses delete statements;
- `cache` passes every statement through unchanged.

```python
from gsql.middleware.querylog import MiddlewareBuilder

seen = []
db.use(MiddlewareBuilder().log_func(lambda sql, args: seen.append((sql, args))).build())
```

`Selector.get`, `Inserter.exec` and both `RawQuerier` methods go through the
middleware; `Selector.get_multi` runs its query directly.

## What it does not do

- There is no builder for `UPDATE` statements, and `Deleter` only builds
  SQL: run a delete or update with `raw_query(...).exec()`.
- The only database it opens by itself is SQLite; other databases need a
  DB-API connection passed to `open_db`.
- It does not create or migrate tables.
- There is no command-line tool.