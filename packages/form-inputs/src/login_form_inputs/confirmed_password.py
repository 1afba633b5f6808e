"""Password confirmation input: must repeat the password it was built with."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from login_form_inputs.formz import FormInput


class ConfirmedPasswordValidationError(str, Enum):
    INVALID = "invalid"


@dataclass(frozen=True)
class ConfirmedPassword(FormInput[str, ConfirmedPasswordValidationError]):
    password: str = ""

    def validator(self, value: str | None) -> ConfirmedPasswordValidationError | None:
        return None if value == self.password else ConfirmedPasswordValidationError.INVALID
