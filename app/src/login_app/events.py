"""Events accepted by the AppBloc."""

from __future__ import annotations

from dataclasses import dataclass

from login_shared.models import User


class AppEvent:
    """Base class for AppBloc events."""


@dataclass(frozen=True)
class AppLogoutRequested(AppEvent):
    """The current user asked to be logged out."""


@dataclass(frozen=True)
class AppUserChanged(AppEvent):
    """The identity provider reported a new session (User.empty when signed out)."""

    user: User
