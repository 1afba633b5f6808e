"""Form-field validators for the login and sign-up forms."""

from login_form_inputs.confirmed_password import (
    ConfirmedPassword,
    ConfirmedPasswordValidationError,
)
from login_form_inputs.email import Email, EmailValidationError
from login_form_inputs.formz import FormInput, FormStatus, validate
from login_form_inputs.password import Password, PasswordValidationError

__all__ = [
    "ConfirmedPassword",
    "ConfirmedPasswordValidationError",
    "Email",
    "EmailValidationError",
    "FormInput",
    "FormStatus",
    "Password",
    "PasswordValidationError",
    "validate",
]
