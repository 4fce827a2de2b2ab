"""Entity metadata: table and column names derived from annotated classes.

An entity is a dataclass, or a class with annotated attributes.  A field's
column name can be set with ``dataclasses.field(metadata={"orm": "column=x"})``
and the table name with a ``__tablename__`` attribute.
"""

from __future__ import annotations

import dataclasses
import re
import threading
import typing
from collections.abc import Callable
from typing import Any, ClassVar

from .errors import InvalidTagContentError, InvalidTypeError, UnknownFieldError

TAG_KEY = "orm"
TAG_KEY_COLUMN = "column"

_UPPER = re.compile(r"[A-Z]")


@dataclasses.dataclass
class Field:
    """One attribute of an entity and the column it maps to."""

    name: str
    column: str
    type: Any = None


@dataclasses.dataclass
class Model:
    """Table name and field mappings of one entity class."""

    table_name: str
    fields: list[Field] = dataclasses.field(default_factory=list)
    field_map: dict[str, Field] = dataclasses.field(default_factory=dict)
    column_map: dict[str, Field] = dataclasses.field(default_factory=dict)


ModelOption = Callable[[Model], None]


def underscore_name(name: str) -> str:
    """Turn a CamelCase name into snake_case; an all-capitals name is lowered."""
    if name == name.upper():
        return name.lower()
    result = _UPPER.sub(lambda m: "_" + m.group().lower(), name)
    return result[1:] if result.startswith("_") else result


def with_table_name(table_name: str) -> ModelOption:
    """Option that overrides the model's table name."""

    def apply(model: Model) -> None:
        model.table_name = table_name

    return apply


def with_column_name(field_name: str, col_name: str) -> ModelOption:
    """Option that overrides the column name of one field."""

    def apply(model: Model) -> None:
        field = model.field_map.get(field_name)
        if field is None:
            raise UnknownFieldError(field_name)
        if model.column_map.get(field.column) is field:
            del model.column_map[field.column]
        field.column = col_name
        model.column_map[col_name] = field

    return apply


def _entity_class(entity: Any) -> type:
    return entity if isinstance(entity, type) else type(entity)


def _is_class_var(hint: Any) -> bool:
    if isinstance(hint, str):
        text = hint.strip()
        return text.startswith(("ClassVar", "typing.ClassVar"))
    return hint is ClassVar or typing.get_origin(hint) is ClassVar


def _declared_fields(cls: type) -> list[tuple[str, Any, str | None]]:
    if dataclasses.is_dataclass(cls):
        return [(f.name, f.type, f.metadata.get(TAG_KEY)) for f in dataclasses.fields(cls)]
    annotations = vars(cls).get("__annotations__")
    if annotations is None:
        raise InvalidTypeError()
    return [
        (name, hint, None)
        for name, hint in annotations.items()
        if not _is_class_var(hint)
    ]


def _parse_tag(tag: str | None) -> dict[str, str]:
    if tag is None:
        return {}
    result: dict[str, str] = {}
    for pair in tag.split(","):
        pair = pair.strip()
        segments = pair.split("=")
        if len(segments) != 2:
            raise InvalidTagContentError(pair)
        result[segments[0].strip()] = segments[1].strip()
    return result


class Registry:
    """Builds models for entity classes and caches them by class."""

    def __init__(self) -> None:
        self._models: dict[type, Model] = {}
        self._lock = threading.Lock()

    def get(self, entity: Any) -> Model:
        """Return the cached model of the entity's class, building it once."""
        cls = _entity_class(entity)
        with self._lock:
            model = self._models.get(cls)
        if model is not None:
            return model
        model = self.register(entity)
        with self._lock:
            return self._models.setdefault(cls, model)

    def register(self, entity: Any, *options: ModelOption) -> Model:
        """Build a fresh model for the entity, applying the options in order."""
        cls = _entity_class(entity)
        fields = []
        for name, hint, tag in _declared_fields(cls):
            tags = _parse_tag(tag)
            column = tags.get(TAG_KEY_COLUMN) or name
            fields.append(Field(name=name, column=underscore_name(column), type=hint))

        table_name = getattr(entity, "__tablename__", "") or ""
        if not table_name:
            table_name = underscore_name(cls.__name__)

        model = Model(
            table_name=table_name,
            fields=fields,
            field_map={f.name: f for f in fields},
            column_map={f.column: f for f in fields},
        )
        for option in options:
            option(model)
        return model