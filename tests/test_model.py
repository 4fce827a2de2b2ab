import dataclasses
from typing import ClassVar, Optional

import pytest

from gsql.errors import InvalidTagContentError, InvalidTypeError, UnknownFieldError
from gsql.model import (
    Field,
    Model,
    Registry,
    underscore_name,
    with_column_name,
    with_table_name,
)


@dataclasses.dataclass
class SampleModel:
    id: int = 0
    first_name: str = ""
    age: int = 0
    last_name: Optional[str] = None


@dataclasses.dataclass
class CustomTableName:
    __tablename__ = "custom_table_name_t"

    first_name: str = ""


@dataclasses.dataclass
class EmptyTableName:
    __tablename__ = ""

    first_name: str = ""


def _expected(table_name, *fields):
    return Model(
        table_name=table_name,
        fields=list(fields),
        field_map={f.name: f for f in fields},
        column_map={f.column: f for f in fields},
    )


SAMPLE_MODEL = _expected(
    "sample_model",
    Field("id", "id", int),
    Field("first_name", "first_name", str),
    Field("age", "age", int),
    Field("last_name", "last_name", Optional[str]),
)


def test_register_instance():
    assert Registry().register(SampleModel()) == SAMPLE_MODEL


def test_register_class():
    assert Registry().register(SampleModel) == SAMPLE_MODEL


def _tag_table(tag):
    @dataclasses.dataclass
    class TagTable:
        FirstName: str = dataclasses.field(default="", metadata={"orm": tag})

    return TagTable()


def test_get_tag_column():
    model = Registry().get(_tag_table("column=first_name_t"))
    assert model == _expected("tag_table", Field("FirstName", "first_name_t", str))


def test_get_empty_column_tag_uses_field_name():
    model = Registry().get(_tag_table("column="))
    assert model == _expected("tag_table", Field("FirstName", "first_name", str))


def test_get_column_only_tag_is_invalid():
    with pytest.raises(InvalidTagContentError) as info:
        Registry().get(_tag_table("column"))
    assert info.value == InvalidTagContentError("column")


def test_get_ignores_unknown_tag_keys():
    model = Registry().get(_tag_table("abc=abc"))
    assert model == _expected("tag_table", Field("FirstName", "first_name", str))


def test_get_custom_table_name():
    model = Registry().get(CustomTableName())
    assert model == _expected(
        "custom_table_name_t", Field("first_name", "first_name", str)
    )


def test_get_empty_table_name_falls_back():
    model = Registry().get(EmptyTableName())
    assert model == _expected("empty_table_name", Field("first_name", "first_name", str))


def test_get_caches_by_class():
    registry = Registry()
    first = registry.get(SampleModel())
    assert registry.get(SampleModel) is first
    assert first == SAMPLE_MODEL


def test_register_builds_a_new_model_each_time():
    registry = Registry()
    first = registry.register(SampleModel)
    second = registry.register(SampleModel)
    first.table_name = "changed"
    assert second.table_name == "sample_model"
    assert registry.register(SampleModel) == SAMPLE_MODEL


@pytest.mark.parametrize("entity", [18, int, None, "text"])
def test_register_rejects_non_entities(entity):
    with pytest.raises(InvalidTypeError):
        Registry().register(entity)


def test_plain_annotated_class():
    class OrderDetail:
        order_id: int
        ItemId: int
        limit: ClassVar[int] = 3

    model = Registry().register(OrderDetail)
    assert model.table_name == "order_detail"
    assert [f.column for f in model.fields] == ["order_id", "item_id"]


def test_with_table_name():
    model = Registry().register(SampleModel(), with_table_name("test_model_ttt"))
    assert model.table_name == "test_model_ttt"


def test_with_column_name():
    model = Registry().register(
        SampleModel(), with_column_name("first_name", "first_name_ccc")
    )
    assert model.field_map["first_name"].column == "first_name_ccc"
    assert model.column_map["first_name_ccc"] is model.field_map["first_name"]
    assert "first_name" not in model.column_map


def test_with_column_name_unknown_field():
    with pytest.raises(UnknownFieldError) as info:
        Registry().register(SampleModel(), with_column_name("XXX", "first_name_ccc"))
    assert info.value == UnknownFieldError("XXX")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("ID", "id"),
        ("Id", "id"),
        ("FirstName", "first_name"),
        ("OrderDetail", "order_detail"),
        ("UsingCol1", "using_col1"),
        ("first_name", "first_name"),
        ("TestModel", "test_model"),
    ],
)
def test_underscore_name(name, expected):
    assert underscore_name(name) == expected