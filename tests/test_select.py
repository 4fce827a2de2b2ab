import dataclasses
import sqlite3
from typing import Optional

import pytest

from gsql.errors import NoRowsError, UnknownFieldError
from gsql.expressions import avg, col, count, max_, min_, not_, raw, sum_, table_of
from gsql.query import Query, QueryType
from gsql.select import Selector
from gsql.session import open_database


@dataclasses.dataclass
class Record:
    __tablename__ = "test_model"

    id: int = 0
    first_name: str = ""
    last_name: Optional[str] = None
    age: int = 0


@dataclasses.dataclass
class Order:
    id: int = 0
    using_col1: str = ""
    using_col2: str = ""


@dataclasses.dataclass
class OrderDetail:
    order_id: int = 0
    item_id: int = 0
    using_col1: str = ""
    using_col2: str = ""


@dataclasses.dataclass
class Item:
    id: int = 0


@pytest.fixture
def db():
    database = open_database(":memory:")
    yield database
    database.connection.close()


@pytest.fixture
def filled_db(db):
    db.connection.execute(
        "CREATE TABLE test_model (id INTEGER, first_name TEXT, last_name TEXT, age INTEGER)"
    )
    db.connection.executemany(
        "INSERT INTO test_model VALUES (?, ?, ?, ?)",
        [(1, "da", "huang", 18), (2, "xiao", "huang", 20)],
    )
    db.connection.commit()
    return db


def _join_on(db):
    t1 = table_of(Order).as_("t1")
    t2 = table_of(OrderDetail).as_("t2")
    return t1, t2, t1.join(t2).on(t1.c("id").eq(t2.c("order_id")))


def test_join_specify_table(db):
    q = Selector(db, Order).from_(table_of(OrderDetail)).build()
    assert q == Query("SELECT * FROM `order_detail`;", [])


@pytest.mark.parametrize(
    "method, keyword",
    [("join", "JOIN"), ("left_join", "LEFT JOIN"), ("right_join", "RIGHT JOIN")],
)
def test_join_using(db, method, keyword):
    t1 = table_of(Order)
    t2 = table_of(OrderDetail)
    t3 = getattr(t1, method)(t2).using("using_col1", "using_col2")
    q = Selector(db, Order).from_(t3).build()
    assert q.sql == (
        f"SELECT * FROM (`order` {keyword} `order_detail` "
        "USING (`using_col1`,`using_col2`));"
    )


def test_join_on(db):
    _, _, t3 = _join_on(db)
    q = Selector(db, Order).from_(t3).build()
    assert q.sql == (
        "SELECT * FROM (`order` AS `t1` JOIN `order_detail` AS `t2` "
        "ON `t1`.`id` = `t2`.`order_id`);"
    )


def test_join_table(db):
    _, t2, t3 = _join_on(db)
    t4 = table_of(Item).as_("t4")
    t5 = t3.join(t4).on(t2.c("item_id").eq(t4.c("id")))
    q = Selector(db, Order).from_(t5).build()
    assert q.sql == (
        "SELECT * FROM "
        "((`order` AS `t1` JOIN `order_detail` AS `t2` ON `t1`.`id` = `t2`.`order_id`) "
        "JOIN `item` AS `t4` ON `t2`.`item_id` = `t4`.`id`);"
    )


def test_table_join(db):
    _, t2, t3 = _join_on(db)
    t4 = table_of(Item).as_("t4")
    t5 = t4.join(t3).on(t2.c("item_id").eq(t4.c("id")))
    q = Selector(db, Order).from_(t5).build()
    assert q.sql == (
        "SELECT * FROM (`item` AS `t4` JOIN (`order` AS `t1` JOIN `order_detail` AS `t2` "
        "ON `t1`.`id` = `t2`.`order_id`) ON `t2`.`item_id` = `t4`.`id`);"
    )


@pytest.mark.parametrize(
    "columns, sql",
    [
        ((col("first_name"), col("last_name")), "SELECT `first_name`,`last_name` FROM `test_model`;"),
        (
            (col("first_name").as_("my_name"), col("last_name")),
            "SELECT `first_name` AS `my_name`,`last_name` FROM `test_model`;",
        ),
        ((avg("age"),), "SELECT AVG(`age`) FROM `test_model`;"),
        ((avg("age").as_("avg_age"),), "SELECT AVG(`age`) AS `avg_age` FROM `test_model`;"),
        ((sum_("age"),), "SELECT SUM(`age`) FROM `test_model`;"),
        ((count("age"),), "SELECT COUNT(`age`) FROM `test_model`;"),
        ((max_("age"),), "SELECT MAX(`age`) FROM `test_model`;"),
        ((min_("age"),), "SELECT MIN(`age`) FROM `test_model`;"),
        ((min_("age"), max_("age")), "SELECT MIN(`age`),MAX(`age`) FROM `test_model`;"),
        (
            (raw("COUNT(DISTINCT `first_name`)"),),
            "SELECT COUNT(DISTINCT `first_name`) FROM `test_model`;",
        ),
    ],
)
def test_select_columns(db, columns, sql):
    assert Selector(db, Record).select(*columns).build() == Query(sql, [])


def test_select_invalid_column(db):
    with pytest.raises(UnknownFieldError) as info:
        Selector(db, Record).select(col("Invalid")).build()
    assert info.value == UnknownFieldError("Invalid")


def test_select_aggregate_invalid_column(db):
    with pytest.raises(UnknownFieldError) as info:
        Selector(db, Record).select(min_("Invalid")).build()
    assert info.value == UnknownFieldError("Invalid")


@pytest.mark.parametrize(
    "predicates, expected",
    [
        ((), Query("SELECT * FROM `test_model`;", [])),
        ((col("age").eq(18),), Query("SELECT * FROM `test_model` WHERE `age` = ?;", [18])),
        (
            (not_(col("age").eq(18)),),
            Query("SELECT * FROM `test_model` WHERE  NOT (`age` = ?);", [18]),
        ),
        (
            (col("age").eq(18).and_(col("first_name").eq("dahuang")),),
            Query(
                "SELECT * FROM `test_model` WHERE (`age` = ?) AND (`first_name` = ?);",
                [18, "dahuang"],
            ),
        ),
        (
            (col("age").eq(18).or_(col("first_name").eq("dahuang")),),
            Query(
                "SELECT * FROM `test_model` WHERE (`age` = ?) OR (`first_name` = ?);",
                [18, "dahuang"],
            ),
        ),
        (
            (raw("`id`<?", 18).as_predicate(),),
            Query("SELECT * FROM `test_model` WHERE (`id`<?);", [18]),
        ),
        (
            (col("id").eq(raw("`age`+?", 1)),),
            Query("SELECT * FROM `test_model` WHERE `id` = (`age`+?);", [1]),
        ),
        (
            (col("id").as_("my_id").eq(18),),
            Query("SELECT * FROM `test_model` WHERE `id` = ?;", [18]),
        ),
        (
            (col("age").eq(18), col("id").eq(3)),
            Query("SELECT * FROM `test_model` WHERE (`age` = ?) AND (`id` = ?);", [18, 3]),
        ),
    ],
)
def test_build_where(db, predicates, expected):
    assert Selector(db, Record).where(*predicates).build() == expected


def test_build_no_where(db):
    assert Selector(db, Record).build() == Query("SELECT * FROM `test_model`;", [])


def test_build_unknown_field(db):
    selector = Selector(db, Record).where(
        col("age").eq(18).or_(col("XX").eq("dahuang"))
    )
    with pytest.raises(UnknownFieldError) as info:
        selector.build()
    assert info.value == UnknownFieldError("XX")


def test_build_twice_gives_same_query(db):
    selector = Selector(db, Record).where(col("age").eq(18))
    expected = Query("SELECT * FROM `test_model` WHERE `age` = ?;", [18])
    assert selector.build() == expected
    assert selector.build() == expected


def test_get_invalid_query(filled_db):
    with pytest.raises(UnknownFieldError) as info:
        Selector(filled_db, Record).where(col("xxx").eq(18)).get()
    assert info.value == UnknownFieldError("xxx")


def test_get_query_error(db):
    with pytest.raises(sqlite3.OperationalError):
        Selector(db, Record).where(col("id").eq(18)).get()


def test_get_no_rows(filled_db):
    with pytest.raises(NoRowsError):
        Selector(filled_db, Record).where(col("id").eq(18)).get()


def test_get_row(filled_db):
    res = Selector(filled_db, Record).where(col("id").eq(1)).get()
    assert res == Record(id=1, first_name="da", last_name="huang", age=18)


def test_get_runs_middlewares(filled_db):
    seen = []

    def middleware(next_handler):
        def handler(qc):
            seen.append((qc.type, qc.model.table_name))
            return next_handler(qc)

        return handler

    filled_db.use(middleware)
    res = Selector(filled_db, Record).where(col("id").eq(2)).get()
    assert res.first_name == "xiao"
    assert seen == [(QueryType.SELECT, "test_model")]


def test_get_multi(filled_db):
    res = Selector(filled_db, Record).get_multi()
    assert res == [
        Record(id=1, first_name="da", last_name="huang", age=18),
        Record(id=2, first_name="xiao", last_name="huang", age=20),
    ]


def test_get_multi_no_rows(filled_db):
    with pytest.raises(NoRowsError):
        Selector(filled_db, Record).where(col("id").eq(99)).get_multi()