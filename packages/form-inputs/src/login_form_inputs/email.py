"""Email address input."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from login_form_inputs.formz import FormInput


class EmailValidationError(str, Enum):
    INVALID = "invalid"


_EMAIL_RE = re.compile(
    r"[a-zA-Z0-9.!#$%&’*+/=?^_`{|}~-]+@[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)*"
)


@dataclass(frozen=True)
class Email(FormInput[str, EmailValidationError]):
    """An email address: local part, '@', and one or more dot-separated labels."""

    def validator(self, value: str | None) -> EmailValidationError | None:
        return None if _EMAIL_RE.fullmatch(value or "") else EmailValidationError.INVALID
