"""Form input primitives.

A FormInput wraps one field value plus whether the user has touched it yet.
A pure (untouched) input still validates, but its error is not displayed, so
an empty form does not open covered in red.

    email = Email.pure()             # untouched
    email = Email.dirty("a@b.com")   # after the user typed
    status = validate([email, password])
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class FormStatus(str, Enum):
    """Overall status of a form and its submission."""

    PURE = "pure"
    VALID = "valid"
    INVALID = "invalid"
    SUBMISSION_IN_PROGRESS = "submission_in_progress"
    SUBMISSION_SUCCESS = "submission_success"
    SUBMISSION_FAILURE = "submission_failure"

    @property
    def is_pure(self) -> bool:
        return self is FormStatus.PURE

    @property
    def is_valid(self) -> bool:
        return self is FormStatus.VALID

    @property
    def is_invalid(self) -> bool:
        return self is FormStatus.INVALID

    @property
    def is_submission_in_progress(self) -> bool:
        return self is FormStatus.SUBMISSION_IN_PROGRESS

    @property
    def is_submission_success(self) -> bool:
        return self is FormStatus.SUBMISSION_SUCCESS

    @property
    def is_submission_failure(self) -> bool:
        return self is FormStatus.SUBMISSION_FAILURE

    @property
    def is_validated(self) -> bool:
        """True once the form is valid, including every submission state."""
        return self in (
            FormStatus.VALID,
            FormStatus.SUBMISSION_IN_PROGRESS,
            FormStatus.SUBMISSION_SUCCESS,
            FormStatus.SUBMISSION_FAILURE,
        )


@dataclass(frozen=True)
class FormInput(Generic[T, E]):
    """A single form field value with its validation rule."""

    value: T
    is_pure: bool = True

    default_value: ClassVar[Any] = ""

    @classmethod
    def pure(cls, value: Any = None, **kwargs: Any) -> Any:
        return cls(value=cls.default_value if value is None else value, is_pure=True, **kwargs)

    @classmethod
    def dirty(cls, value: Any = None, **kwargs: Any) -> Any:
        return cls(value=cls.default_value if value is None else value, is_pure=False, **kwargs)

    @abstractmethod
    def validator(self, value: T) -> E | None:
        """Return the validation error for `value`, or None when it is valid."""

    @property
    def error(self) -> E | None:
        return self.validator(self.value)

    @property
    def display_error(self) -> E | None:
        """The error to show the user: none until the field has been touched."""
        return None if self.is_pure else self.error

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def is_not_valid(self) -> bool:
        return not self.is_valid


def validate(inputs: Iterable[FormInput[Any, Any]]) -> FormStatus:
    """Combine field inputs into a form status.

    All pure -> PURE; any invalid -> INVALID; otherwise VALID.
    """
    inputs = list(inputs)
    if all(i.is_pure for i in inputs):
        return FormStatus.PURE
    if any(i.is_not_valid for i in inputs):
        return FormStatus.INVALID
    return FormStatus.VALID
