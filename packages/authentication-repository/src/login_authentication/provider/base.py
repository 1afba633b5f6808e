"""Identity provider contract — what the repository needs from the auth backend.

The ABC captures the five capabilities the login flow depends on:

  - a notification channel for session presence/absence (auth_state_changes)
  - email/password registration and sign-in
  - federated credential exchange, via a browser popup or a native handshake
  - sign-out
  - string error codes on failure (ProviderAuthError.code)

Session bookkeeping is shared by every provider: subclasses call
`_set_session()` after a successful sign-in or sign-out, and every active
`auth_state_changes()` subscriber receives the new value in order.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class ProviderAuthError(Exception):
    """Error reported by the identity provider, carrying its string code."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(f"[{code}] {self.message}")


class ProviderUser(BaseModel):
    """Raw session as the provider reports it."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None


class AuthCredential(BaseModel):
    """A federated credential the provider can exchange for a session."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    access_token: str | None = None
    id_token: str | None = None


class UserCredential(BaseModel):
    """Result of a successful sign-in."""

    model_config = ConfigDict(frozen=True)

    user: ProviderUser
    credential: AuthCredential | None = None


class GoogleAuthProvider:
    """Describes the Google federated sign-in provider."""

    PROVIDER_ID: ClassVar[str] = "google.com"

    def __init__(self, scopes: list[str] | None = None) -> None:
        self.scopes = list(scopes or ["openid", "email", "profile"])

    @property
    def provider_id(self) -> str:
        return self.PROVIDER_ID

    @classmethod
    def credential(
        cls, access_token: str | None = None, id_token: str | None = None
    ) -> AuthCredential:
        """Wrap a Google access/id token pair as a provider credential."""
        if not access_token and not id_token:
            raise ProviderAuthError(
                "invalid-credential", "A Google credential needs an access token or an id token"
            )
        return AuthCredential(
            provider_id=cls.PROVIDER_ID, access_token=access_token, id_token=id_token
        )


class IdentityProvider(ABC):
    """Abstract base for identity provider adapters."""

    def __init__(self) -> None:
        self._current_user: ProviderUser | None = None
        self._subscribers: set[asyncio.Queue[ProviderUser | None]] = set()

    @property
    def current_user(self) -> ProviderUser | None:
        return self._current_user

    def _set_session(self, user: ProviderUser | None) -> None:
        """Replace the session and notify every subscriber."""
        self._current_user = user
        logger.debug(
            f"Session changed to {user.uid if user else 'signed out'} "
            f"({len(self._subscribers)} subscribers)"
        )
        for queue in self._subscribers:
            queue.put_nowait(user)

    async def auth_state_changes(self) -> AsyncIterator[ProviderUser | None]:
        """Yield the current session, then every later change.

        Each call is an independent subscription; closing the iterator
        unregisters it.
        """
        queue: asyncio.Queue[ProviderUser | None] = asyncio.Queue()
        queue.put_nowait(self._current_user)
        self._subscribers.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)

    @abstractmethod
    async def create_user_with_email_and_password(
        self, email: str, password: str
    ) -> UserCredential:
        """Register a new account and sign it in."""

    @abstractmethod
    async def sign_in_with_email_and_password(self, email: str, password: str) -> UserCredential:
        """Sign in an existing email/password account."""

    @abstractmethod
    async def sign_in_with_popup(self, provider: GoogleAuthProvider) -> UserCredential:
        """Run the interactive browser flow for a federated provider."""

    @abstractmethod
    async def sign_in_with_credential(self, credential: AuthCredential) -> UserCredential:
        """Exchange a federated credential for a session."""

    async def sign_out(self) -> None:
        """End the session. Providers with server-side sessions extend this."""
        self._set_session(None)

    async def close(self) -> None:
        """Release transport resources. No-op unless the provider holds any."""
