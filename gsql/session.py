"""Database handles, transactions and the middleware-wrapped executors."""

from __future__ import annotations

import abc
import dataclasses
import logging
import sqlite3
from collections.abc import Callable, Sequence
from typing import Any, Optional

from .builder import MYSQL, Dialect
from .errors import FailedToRollbackTxError, GsqlError, NoRowsError
from .model import Model, Registry
from .query import Handler, Middleware, QueryContext, QueryResult, Result
from .valuer import Creator, new_valuer

_log = logging.getLogger(__name__)

_TX_DONE = "sql: transaction has already been committed or rolled back"


@dataclasses.dataclass
class Core:
    """Settings shared by a database handle and the statements built on it."""

    model: Optional[Model] = None
    dialect: Dialect = MYSQL
    creator: Creator = new_valuer
    registry: Registry = dataclasses.field(default_factory=Registry)
    middlewares: list = dataclasses.field(default_factory=list)


class Session(abc.ABC):
    """Something statements can run on: a database or a transaction."""

    core: Core

    @abc.abstractmethod
    def _query(self, sql: str, args: Sequence[Any]) -> Any:
        """Run a query and return a DB-API cursor positioned before its rows."""

    @abc.abstractmethod
    def _exec(self, sql: str, args: Sequence[Any]) -> Any:
        """Run a statement that changes data and return its DB-API cursor."""


class DB(Session):
    """A DB-API connection with its registry, dialect and middlewares.

    Statements run outside a transaction are committed as soon as they run.
    """

    def __init__(self, connection: Any, core: Optional[Core] = None) -> None:
        self.connection = connection
        self.core = core if core is not None else Core()
        self._tx: Optional[Tx] = None

    def use(self, *middlewares: Middleware) -> None:
        """Add middlewares; the first added is the outermost."""
        self.core.middlewares.extend(middlewares)

    def _query(self, sql: str, args: Sequence[Any]) -> Any:
        cursor = self.connection.cursor()
        cursor.execute(sql, list(args))
        return cursor

    def _exec(self, sql: str, args: Sequence[Any]) -> Any:
        cursor = self.connection.cursor()
        cursor.execute(sql, list(args))
        if self._tx is None:
            self.connection.commit()
        return cursor

    def begin_tx(self) -> Tx:
        """Start a transaction on the connection."""
        if self._tx is not None:
            raise GsqlError("gsql: a transaction is already in progress")
        self._tx = Tx(self)
        return self._tx

    def do_tx(self, fn: Callable[[Tx], Any]) -> Any:
        """Run fn in a transaction: commit if it returns, roll back if it raises."""
        tx = self.begin_tx()
        try:
            result = fn(tx)
        except Exception as exc:
            raise FailedToRollbackTxError(exc, _try_rollback(tx), False) from exc
        except BaseException:
            _try_rollback(tx)
            raise
        tx.commit()
        return result

    def wait(self) -> None:
        """Ping the database, retrying while the connection is reported bad."""
        retriable: tuple = (ConnectionError,)
        operational = getattr(self.connection, "OperationalError", None)
        if isinstance(operational, type):
            retriable += (operational,)
        while True:
            try:
                self.connection.cursor().execute("SELECT 1")
                return
            except retriable:
                _log.warning("gsql: err bad connection")
            except Exception:
                return

    def _finish(self, tx: Tx) -> None:
        if self._tx is tx:
            self._tx = None


def _try_rollback(tx: Tx) -> Optional[BaseException]:
    try:
        tx.rollback()
    except Exception as exc:
        return exc
    return None


class Tx(Session):
    """A transaction on a database's connection."""

    def __init__(self, db: DB) -> None:
        self.db = db
        self._done = False

    @property
    def core(self) -> Core:
        return self.db.core

    def _check_open(self) -> None:
        if self._done:
            raise GsqlError(_TX_DONE)

    def _query(self, sql: str, args: Sequence[Any]) -> Any:
        self._check_open()
        cursor = self.db.connection.cursor()
        cursor.execute(sql, list(args))
        return cursor

    def _exec(self, sql: str, args: Sequence[Any]) -> Any:
        self._check_open()
        cursor = self.db.connection.cursor()
        cursor.execute(sql, list(args))
        return cursor

    def _close(self) -> None:
        self._check_open()
        self._done = True
        self.db._finish(self)

    def commit(self) -> None:
        """Make the transaction's changes permanent."""
        self._close()
        self.db.connection.commit()

    def rollback(self) -> None:
        """Discard the transaction's changes."""
        self._close()
        self.db.connection.rollback()

    def rollback_if_not_commit(self) -> None:
        """Roll back unless the transaction has already finished."""
        if not self._done:
            self.rollback()


DBOption = Callable[[DB], None]


def open_db(connection: Any, *options: DBOption) -> DB:
    """Wrap an open DB-API connection; MySQL dialect unless an option says otherwise."""
    db = DB(connection)
    for option in options:
        option(db)
    return db


def open_database(dsn: str, *options: DBOption) -> DB:
    """Open an SQLite database by file name or ``file:`` URI."""
    connection = sqlite3.connect(dsn, uri=dsn.startswith("file:"))
    return open_db(connection, *options)


def with_valuer(creator: Creator) -> DBOption:
    """Option that sets how entities are read and filled."""

    def apply(db: DB) -> None:
        db.core.creator = creator

    return apply


def with_registry(registry: Registry) -> DBOption:
    """Option that sets the model registry."""

    def apply(db: DB) -> None:
        db.core.registry = registry

    return apply


def with_dialect(dialect: Dialect) -> DBOption:
    """Option that sets the SQL dialect."""

    def apply(db: DB) -> None:
        db.core.dialect = dialect

    return apply


def _chain(core: Core, handler: Handler) -> Handler:
    for middleware in reversed(core.middlewares):
        handler = middleware(handler)
    return handler


def fetch_one(
    session: Session, core: Core, qc: QueryContext, entity_type: type
) -> QueryResult:
    """Run a query through the middlewares and fill one new entity from its first row.

    The entity class must be constructible without arguments.
    """

    def handler(context: QueryContext) -> QueryResult:
        try:
            query = context.build_query()
            cursor = session._query(query.sql, query.args)
            row = cursor.fetchone()
        except Exception as exc:
            return QueryResult(error=exc)
        if row is None:
            return QueryResult(error=NoRowsError())
        entity = entity_type()
        columns = [description[0] for description in cursor.description]
        try:
            core.creator(core.model, entity).set_columns(columns, row)
        except Exception as exc:
            return QueryResult(result=entity, error=exc)
        return QueryResult(result=entity)

    return _chain(core, handler)(qc)


def execute(session: Session, core: Core, qc: QueryContext) -> QueryResult:
    """Run a data-changing statement through the middlewares."""

    def handler(context: QueryContext) -> QueryResult:
        try:
            query = context.build_query()
            cursor = session._exec(query.sql, query.args)
        except Exception as exc:
            return QueryResult(result=Result(error=exc), error=exc)
        return QueryResult(result=Result(cursor=cursor))

    return _chain(core, handler)(qc)