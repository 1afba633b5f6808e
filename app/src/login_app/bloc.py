"""AppBloc — maps session notifications and logout requests to AppState.

The bloc subscribes to the repository's user stream as soon as it is built
and turns every User it receives into an AppUserChanged event. Those events
and explicit AppLogoutRequested events share one ordered inbox.

  AppUserChanged(User.empty) -> unauthenticated
  AppUserChanged(user)       -> authenticated(user)
  AppLogoutRequested         -> repository.log_out(); state unchanged

A logout only changes state through the AppUserChanged(User.empty) that the
provider sends once the session ends. Logout failures are logged, not
modelled as state.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from login_authentication import AuthenticationRepository, LogOutFailure

from login_app.bloc_base import Bloc
from login_app.events import AppEvent, AppLogoutRequested, AppUserChanged
from login_app.state import AppState

logger = logging.getLogger(__name__)


class AppBloc(Bloc[AppEvent, AppState]):
    """Application-wide authentication state machine.

    Must be constructed inside a running event loop: the user stream
    subscription starts immediately. Use `async with` or call close() to
    release it.
    """

    def __init__(self, authentication_repository: AuthenticationRepository) -> None:
        super().__init__(AppState.unknown())
        self._authentication_repository = authentication_repository
        self.on(AppUserChanged, self._on_user_changed)
        self.on(AppLogoutRequested, self._on_logout_requested)
        self._user_subscription: asyncio.Task[None] = asyncio.get_running_loop().create_task(
            self._forward_users()
        )

    async def _forward_users(self) -> None:
        try:
            async for user in self._authentication_repository.user():
                self.add(AppUserChanged(user))
        except Exception:
            logger.exception("User stream failed; no further session changes will be received")

    async def _on_user_changed(self, event: AppUserChanged) -> None:
        if event.user.is_not_empty:
            self.emit(AppState.authenticated(event.user))
        else:
            self.emit(AppState.unauthenticated())
        logger.info(f"App status is now '{self.state.status.value}'")

    async def _on_logout_requested(self, event: AppLogoutRequested) -> None:
        try:
            await self._authentication_repository.log_out()
        except LogOutFailure as e:
            logger.warning(f"Logout request failed: {e.message}")

    async def close(self) -> None:
        """Release the user stream subscription, then stop the inbox."""
        self._user_subscription.cancel()
        try:
            with contextlib.suppress(asyncio.CancelledError):
                await self._user_subscription
        finally:
            await super().close()

    async def __aenter__(self) -> AppBloc:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
