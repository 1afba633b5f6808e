"""AuthenticationRepository — the session source for the login flow.

Normalizes the identity provider into this system's vocabulary:

  user()                          — stream of User, one per provider session change
  current_user                    — last User delivered by user(), read synchronously
  sign_up                         — register with email/password
  log_in_with_email_and_password  — sign in with email/password
  log_in_with_google              — browser popup or native handshake, then credential exchange
  log_out                         — identity provider and Google sign-out, concurrently

Every mutating operation catches provider errors at this boundary and raises
the family's typed failure instead; no raw provider error escapes. Success is
reported through user(), not through return values: a completed sign-in
shows up as the next User on the stream.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import ClassVar

from login_cache import CacheClient
from login_shared.models import User

from login_authentication.config import AuthSettings, load_settings
from login_authentication.failures import (
    LogInWithEmailAndPasswordFailure,
    LogInWithGoogleFailure,
    LogOutFailure,
    SignUpWithEmailAndPasswordFailure,
)
from login_authentication.provider.base import (
    AuthCredential,
    GoogleAuthProvider,
    IdentityProvider,
    ProviderAuthError,
    ProviderUser,
)
from login_authentication.provider.firebase import FirebaseAuthClient
from login_authentication.provider.google import GoogleSignIn

logger = logging.getLogger(__name__)


def to_user(provider_user: ProviderUser | None) -> User:
    """Map a raw provider session to a User (no session -> User.empty)."""
    if provider_user is None:
        return User.empty
    return User(
        id=provider_user.uid,
        email=provider_user.email,
        name=provider_user.display_name,
        photo=provider_user.photo_url,
    )


class AuthenticationRepository:
    """Abstracts how a user is authenticated and how the current user is fetched.

    Collaborators are injected; any left out are built from `settings`
    (or from the environment when settings are not given either). With both
    providers injected and no settings, `is_web` defaults to False.
    """

    USER_CACHE_KEY: ClassVar[str] = "__user_cache_key__"

    def __init__(
        self,
        cache: CacheClient | None = None,
        identity_provider: IdentityProvider | None = None,
        google_sign_in: GoogleSignIn | None = None,
        *,
        settings: AuthSettings | None = None,
        is_web: bool | None = None,
    ) -> None:
        if settings is None and (identity_provider is None or google_sign_in is None):
            settings = load_settings()

        self._cache = cache if cache is not None else CacheClient()
        self._identity_provider = (
            identity_provider if identity_provider is not None else FirebaseAuthClient(settings)
        )
        self._google_sign_in = (
            google_sign_in if google_sign_in is not None else GoogleSignIn(settings)
        )
        if is_web is None:
            is_web = settings.is_web if settings is not None else False
        self.is_web = is_web

    async def user(self) -> AsyncIterator[User]:
        """Yield a User for every session notification from the provider.

        The cache is written before each value is yielded, so current_user is
        never older than the last User a consumer has seen. Closing the
        iterator releases the provider subscription.
        """
        changes = self._identity_provider.auth_state_changes()
        try:
            async for provider_user in changes:
                user = to_user(provider_user)
                self._cache.write(self.USER_CACHE_KEY, user)
                yield user
        finally:
            await changes.aclose()

    @property
    def current_user(self) -> User:
        """The last User delivered by user(), or User.empty."""
        return self._cache.read(self.USER_CACHE_KEY, User) or User.empty

    async def sign_up(self, email: str, password: str) -> None:
        """Create a new account with email and password.

        Raises:
            SignUpWithEmailAndPasswordFailure: the provider rejected the request.
        """
        logger.info("Signing up with email and password")
        try:
            await self._identity_provider.create_user_with_email_and_password(
                email=email, password=password
            )
        except ProviderAuthError as e:
            failure = SignUpWithEmailAndPasswordFailure.from_code(e.code)
            logger.warning(f"Sign-up failed with code '{e.code}': {failure.message}")
            raise failure from e
        except Exception as e:
            logger.warning(f"Sign-up failed: {e!r}")
            raise SignUpWithEmailAndPasswordFailure() from e

    async def log_in_with_google(self) -> None:
        """Sign in with Google.

        On web the browser popup yields the credential; elsewhere the native
        Google handshake does. Either way the credential is then exchanged
        with the identity provider for a session.

        Raises:
            LogInWithGoogleFailure: any step failed or the user cancelled.
        """
        logger.info(f"Signing in with Google ({'popup' if self.is_web else 'native'} flow)")
        try:
            credential = await self._google_credential()
            await self._identity_provider.sign_in_with_credential(credential)
        except ProviderAuthError as e:
            failure = LogInWithGoogleFailure.from_code(e.code)
            logger.warning(f"Google sign-in failed with code '{e.code}': {failure.message}")
            raise failure from e
        except Exception as e:
            logger.warning(f"Google sign-in failed: {e!r}")
            raise LogInWithGoogleFailure() from e

    async def _google_credential(self) -> AuthCredential:
        if self.is_web:
            user_credential = await self._identity_provider.sign_in_with_popup(
                GoogleAuthProvider()
            )
            if user_credential.credential is None:
                raise ValueError("Popup sign-in returned no credential")
            return user_credential.credential

        google_user = await self._google_sign_in.sign_in()
        if google_user is None:
            raise ValueError("Google sign-in was cancelled")
        google_auth = await google_user.authentication()
        return GoogleAuthProvider.credential(
            access_token=google_auth.access_token,
            id_token=google_auth.id_token,
        )

    async def log_in_with_email_and_password(self, email: str, password: str) -> None:
        """Sign in with email and password.

        Raises:
            LogInWithEmailAndPasswordFailure: the provider rejected the request.
        """
        logger.info("Signing in with email and password")
        try:
            await self._identity_provider.sign_in_with_email_and_password(
                email=email, password=password
            )
        except ProviderAuthError as e:
            failure = LogInWithEmailAndPasswordFailure.from_code(e.code)
            logger.warning(f"Sign-in failed with code '{e.code}': {failure.message}")
            raise failure from e
        except Exception as e:
            logger.warning(f"Sign-in failed: {e!r}")
            raise LogInWithEmailAndPasswordFailure() from e

    async def log_out(self) -> None:
        """Sign out of the identity provider and Google at the same time.

        The session change arrives separately on user().

        Raises:
            LogOutFailure: either sign-out failed.
        """
        logger.info("Logging out")
        try:
            await asyncio.gather(
                self._identity_provider.sign_out(),
                self._google_sign_in.sign_out(),
            )
        except Exception as e:
            logger.warning(f"Log-out failed: {e!r}")
            raise LogOutFailure() from e

    async def close(self) -> None:
        """Release the provider transports."""
        await self._identity_provider.close()
        await self._google_sign_in.close()
