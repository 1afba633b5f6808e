"""LoginCubit — form state for email/password and Google log-in."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from login_authentication import (
    AuthenticationRepository,
    LogInWithEmailAndPasswordFailure,
    LogInWithGoogleFailure,
)
from login_form_inputs import Email, FormStatus, Password, validate

from login_app.bloc_base import Cubit


@dataclass(frozen=True)
class LoginState:
    email: Email = field(default_factory=Email.pure)
    password: Password = field(default_factory=Password.pure)
    status: FormStatus = FormStatus.PURE
    error_message: str | None = None


class LoginCubit(Cubit[LoginState]):
    """Drives the login form.

    A successful log-in only moves the form to submission_success; the
    session itself reaches the app through the repository's user stream.
    """

    def __init__(self, authentication_repository: AuthenticationRepository) -> None:
        super().__init__(LoginState())
        self._authentication_repository = authentication_repository

    def email_changed(self, value: str) -> None:
        email = Email.dirty(value)
        self.emit(
            replace(
                self.state,
                email=email,
                status=validate([email, self.state.password]),
                error_message=None,
            )
        )

    def password_changed(self, value: str) -> None:
        password = Password.dirty(value)
        self.emit(
            replace(
                self.state,
                password=password,
                status=validate([self.state.email, password]),
                error_message=None,
            )
        )

    async def log_in_with_credentials(self) -> None:
        if not self.state.status.is_validated:
            return
        self.emit(replace(self.state, status=FormStatus.SUBMISSION_IN_PROGRESS, error_message=None))
        try:
            await self._authentication_repository.log_in_with_email_and_password(
                email=self.state.email.value,
                password=self.state.password.value,
            )
        except LogInWithEmailAndPasswordFailure as e:
            self.emit(
                replace(self.state, status=FormStatus.SUBMISSION_FAILURE, error_message=e.message)
            )
            return
        self.emit(replace(self.state, status=FormStatus.SUBMISSION_SUCCESS))

    async def log_in_with_google(self) -> None:
        self.emit(replace(self.state, status=FormStatus.SUBMISSION_IN_PROGRESS, error_message=None))
        try:
            await self._authentication_repository.log_in_with_google()
        except LogInWithGoogleFailure as e:
            self.emit(
                replace(self.state, status=FormStatus.SUBMISSION_FAILURE, error_message=e.message)
            )
            return
        self.emit(replace(self.state, status=FormStatus.SUBMISSION_SUCCESS))
