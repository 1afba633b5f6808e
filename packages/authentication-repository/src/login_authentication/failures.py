"""Typed failures raised by the AuthenticationRepository.

One failure class per operation family. Each carries a human-readable message
resolved from the provider's error code; an unrecognized code always resolves
to the family's generic message, never to an error of its own.

  SignUpWithEmailAndPasswordFailure  — sign_up
  LogInWithEmailAndPasswordFailure   — log_in_with_email_and_password
  LogInWithGoogleFailure             — log_in_with_google
  LogOutFailure                      — log_out (always generic)
"""

from __future__ import annotations

from typing import ClassVar


class AuthenticationFailure(Exception):
    """Base class for every failure the repository raises."""

    default_message: ClassVar[str] = "An unknown exception occurred"
    messages: ClassVar[dict[str, str]] = {}

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        self.code = code
        super().__init__(self.message)

    @classmethod
    def from_code(cls, code: str | None) -> AuthenticationFailure:
        """Build the failure for a provider error code."""
        message = cls.messages.get(code or "")
        if message is None:
            return cls()
        return cls(message, code=code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code!r})"


class SignUpWithEmailAndPasswordFailure(AuthenticationFailure):
    default_message = "An unknown exception occurred while signing up with email and password"
    messages = {
        "invalid-email": "The email address is badly formatted",
        "user-disabled": "The user has been disabled. Please contact support for help",
        "email-already-in-use": "The email address is already in use by another account",
        "operation-not-allowed": (
            "Email and password accounts are not enabled. Please contact support for help"
        ),
        "weak-password": "The password is not strong enough",
    }


class LogInWithEmailAndPasswordFailure(AuthenticationFailure):
    messages = {
        "invalid-email": "Email is not valid or badly formatted",
        "user-disabled": "This user has been disabled. Please contact support for help",
        "user-not-found": "No user found for this email",
        "wrong-password": "Wrong password provided for this user",
    }


class LogInWithGoogleFailure(AuthenticationFailure):
    messages = {
        "account-exists-with-different-credential": (
            "An account already exists with the same email address but different "
            "sign-in credentials. Sign in using a provider associated with this email address."
        ),
        "invalid-credential": "Error occurred while accessing credentials. Try again.",
        "operation-not-allowed": (
            "Error occurred because account linking is not enabled. "
            "Enable account linking and try again."
        ),
        "invalid-verification-code": "The verification code is invalid.",
        "invalid-verification-id": "The verification ID is invalid.",
    }


class LogOutFailure(AuthenticationFailure):
    """Sign-out failed. Never code-specific: the two sign-outs are not reported separately."""

    default_message = "An unknown exception occurred while logging out"

    @classmethod
    def from_code(cls, code: str | None) -> LogOutFailure:
        return cls()
