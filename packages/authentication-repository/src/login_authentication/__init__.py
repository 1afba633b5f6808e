"""Authentication repository for the login flow.

Wraps the external identity provider (Firebase Authentication plus Google
sign-in) behind AuthenticationRepository, and translates every provider error
into one typed failure per operation family.
"""

from login_authentication.failures import (
    AuthenticationFailure,
    LogInWithEmailAndPasswordFailure,
    LogInWithGoogleFailure,
    LogOutFailure,
    SignUpWithEmailAndPasswordFailure,
)
from login_authentication.repository import AuthenticationRepository

__all__ = [
    "AuthenticationFailure",
    "AuthenticationRepository",
    "LogInWithEmailAndPasswordFailure",
    "LogInWithGoogleFailure",
    "LogOutFailure",
    "SignUpWithEmailAndPasswordFailure",
]
