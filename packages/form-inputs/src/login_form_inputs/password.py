"""Password input."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from login_form_inputs.formz import FormInput


class PasswordValidationError(str, Enum):
    INVALID = "invalid"


# At least 8 characters, with at least one letter and one digit.
_PASSWORD_RE = re.compile(r"(?=.*[A-Za-z])(?=.*[0-9])[A-Za-z0-9]{8,}")


@dataclass(frozen=True)
class Password(FormInput[str, PasswordValidationError]):
    def validator(self, value: str | None) -> PasswordValidationError | None:
        return None if _PASSWORD_RE.fullmatch(value or "") else PasswordValidationError.INVALID
