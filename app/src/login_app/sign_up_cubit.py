"""SignUpCubit — form state for creating an account."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from login_authentication import AuthenticationRepository, SignUpWithEmailAndPasswordFailure
from login_form_inputs import (
    ConfirmedPassword,
    Email,
    FormInput,
    FormStatus,
    Password,
    validate,
)

from login_app.bloc_base import Cubit


@dataclass(frozen=True)
class SignUpState:
    email: Email = field(default_factory=Email.pure)
    password: Password = field(default_factory=Password.pure)
    confirmed_password: ConfirmedPassword = field(default_factory=ConfirmedPassword.pure)
    status: FormStatus = FormStatus.PURE
    error_message: str | None = None

    @property
    def inputs(self) -> list[FormInput[Any, Any]]:
        return [self.email, self.password, self.confirmed_password]


class SignUpCubit(Cubit[SignUpState]):
    def __init__(self, authentication_repository: AuthenticationRepository) -> None:
        super().__init__(SignUpState())
        self._authentication_repository = authentication_repository

    def _update(self, **changes: Any) -> None:
        state = replace(self.state, error_message=None, **changes)
        self.emit(replace(state, status=validate(state.inputs)))

    def email_changed(self, value: str) -> None:
        self._update(email=Email.dirty(value))

    def password_changed(self, value: str) -> None:
        # The confirmation is re-checked against the new password.
        confirmed_password = ConfirmedPassword(
            value=self.state.confirmed_password.value,
            is_pure=self.state.confirmed_password.is_pure,
            password=value,
        )
        self._update(password=Password.dirty(value), confirmed_password=confirmed_password)

    def confirmed_password_changed(self, value: str) -> None:
        self._update(
            confirmed_password=ConfirmedPassword.dirty(value, password=self.state.password.value)
        )

    async def sign_up_form_submitted(self) -> None:
        if not self.state.status.is_validated:
            return
        self.emit(replace(self.state, status=FormStatus.SUBMISSION_IN_PROGRESS, error_message=None))
        try:
            await self._authentication_repository.sign_up(
                email=self.state.email.value,
                password=self.state.password.value,
            )
        except SignUpWithEmailAndPasswordFailure as e:
            self.emit(
                replace(self.state, status=FormStatus.SUBMISSION_FAILURE, error_message=e.message)
            )
            return
        self.emit(replace(self.state, status=FormStatus.SUBMISSION_SUCCESS))
