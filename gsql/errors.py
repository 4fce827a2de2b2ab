"""Exceptions raised while building and running queries."""

from __future__ import annotations

from typing import Any


class GsqlError(Exception):
    """Base class of every error the package raises.

    Two errors are equal when they are of the same class and carry the same
    arguments, which makes expected errors easy to compare.
    """

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GsqlError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), repr(self.args)))


class _FixedMessageError(GsqlError):
    message = ""

    def __init__(self) -> None:
        super().__init__(self.message)


class InvalidTypeError(_FixedMessageError, TypeError):
    """The entity is not a class with declared fields."""

    message = "invalid type"


class InvalidExpressionError(_FixedMessageError):
    """An expression of an unknown kind was met while building SQL."""

    message = "invalid expression"


class NoRowsError(_FixedMessageError, LookupError):
    """A query that should return a row returned none."""

    message = "no rows in result set"


class InsertZeroRowError(_FixedMessageError):
    """An insert was built without any values."""

    message = "no values to insert"


class _SubjectError(GsqlError):
    template = "{}"

    def __init__(self, subject: Any) -> None:
        self.subject = subject
        super().__init__(self.template.format(subject))


class UnknownFieldError(_SubjectError):
    """A field name that the model does not declare."""

    template = "gsql: unknown field: {}"


class UnknownColumnError(_SubjectError):
    """A column name that the model does not map."""

    template = "gsql: unknown column: {}"


class InvalidTagContentError(_SubjectError):
    """A malformed entry in a field's orm tag."""

    template = "gsql: invalid tag content: {}"


class UnsupportedExpressionError(_SubjectError):
    """An expression that cannot be rendered in this position."""

    template = "gsql: unsupported expression: {}"


class UnsupportedTableError(_SubjectError):
    """A table reference of an unsupported kind."""

    template = "gsql: unsupported table: {}"


class UnsupportedAssignableError(_SubjectError):
    """An assignment target of an unsupported kind."""

    template = "gsql: unsupported assignable: {}"


def _render(error: BaseException | None) -> str:
    return "<nil>" if error is None else str(error)


class FailedToRollbackTxError(GsqlError):
    """A transaction body failed and the transaction was rolled back."""

    def __init__(
        self,
        biz_error: BaseException | None,
        rollback_error: BaseException | None,
        panicked: bool,
    ) -> None:
        self.biz_error = biz_error
        self.rollback_error = rollback_error
        self.panicked = panicked
        super().__init__(
            "gsql: failed to rollback transaction "
            f"bizErr:{_render(biz_error)}, rbErr:{_render(rollback_error)} , "
            f"isPanic:{'true' if panicked else 'false'} "
        )