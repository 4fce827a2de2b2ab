"""Reading entity attributes and filling them from result rows."""

from __future__ import annotations

import types
import typing
from collections.abc import Callable, Iterable
from typing import Any, Union

from .errors import UnknownColumnError, UnknownFieldError
from .model import Model

_TRUE = {"1", "t", "true", "y", "yes"}
_FALSE = {"0", "f", "false", "n", "no"}


def _unwrap_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin is Union or origin is getattr(types, "UnionType", None):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _as_text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode()
    return value


def _convert(value: Any, hint: Any) -> Any:
    if value is None:
        return None
    target = _unwrap_optional(hint)
    if not isinstance(target, type) or isinstance(value, target):
        return value
    if target is bool:
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(_as_text(value)).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"cannot convert {value!r} to bool")
    if target is int:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"cannot convert {value!r} to int")
        return int(_as_text(value))
    if target is float:
        return float(_as_text(value))
    if target is str:
        return str(_as_text(value))
    if target is bytes:
        if isinstance(value, str):
            return value.encode()
        return bytes(value)
    return value


class Valuer:
    """Accesses one entity through its model's fields and columns."""

    def __init__(self, model: Model, entity: Any) -> None:
        self.model = model
        self.entity = entity

    def set_columns(self, columns: Iterable[str], row: Iterable[Any]) -> None:
        """Assign a row's values to the attributes mapped by the column names.

        Nothing is assigned unless every column is known and every value
        converts to its field's declared type.
        """
        columns = list(columns)
        values = list(row)
        if len(columns) != len(values):
            raise ValueError(
                f"expected {len(columns)} values in row, got {len(values)}"
            )
        updates = []
        for column, value in zip(columns, values):
            field = self.model.column_map.get(column)
            if field is None:
                raise UnknownColumnError(column)
            try:
                converted = _convert(value, field.type)
            except (TypeError, ValueError) as exc:
                raise ValueError(
                    f"cannot scan column {column!r} value {value!r}: {exc}"
                ) from exc
            updates.append((field.name, converted))
        for name, value in updates:
            setattr(self.entity, name, value)

    def field(self, name: str) -> Any:
        """Return the value of the field with this name."""
        field = self.model.field_map.get(name)
        if field is None:
            raise UnknownFieldError(name)
        return getattr(self.entity, field.name)


Creator = Callable[[Model, Any], Valuer]


def new_valuer(model: Model, entity: Any) -> Valuer:
    """Create a valuer for the entity; the default creator."""
    return Valuer(model, entity)