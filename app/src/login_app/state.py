"""Application-wide authentication state consumed by the router."""

from __future__ import annotations

from enum import Enum

from login_shared.models import User
from pydantic import BaseModel, ConfigDict, model_validator


class AppStatus(str, Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AppState(BaseModel):
    """Authentication status plus the signed-in user.

    `status == AUTHENTICATED` if and only if `user` is not User.empty.
    """

    model_config = ConfigDict(frozen=True)

    status: AppStatus
    user: User = User.empty

    @model_validator(mode="after")
    def _check_user_matches_status(self) -> AppState:
        if (self.status is AppStatus.AUTHENTICATED) != self.user.is_not_empty:
            raise ValueError(f"status '{self.status.value}' does not match user '{self.user.id}'")
        return self

    @classmethod
    def unknown(cls) -> AppState:
        return cls(status=AppStatus.UNKNOWN)

    @classmethod
    def authenticated(cls, user: User) -> AppState:
        return cls(status=AppStatus.AUTHENTICATED, user=user)

    @classmethod
    def unauthenticated(cls) -> AppState:
        return cls(status=AppStatus.UNAUTHENTICATED)
