"""Shared test fixtures for Authentication Repository tests.

Provides:
  - Mock HTTP transport for httpx (intercepts all requests)
  - In-memory fakes for the identity provider and Google sign-in
  - AuthSettings with fake credentials
  - A helper to mint ID tokens carrying profile claims
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx
import jwt as pyjwt
import pytest
from login_authentication.config import AuthSettings
from login_authentication.provider.base import (
    AuthCredential,
    GoogleAuthProvider,
    IdentityProvider,
    ProviderUser,
    UserCredential,
)
from login_authentication.provider.google import (
    GoogleSignInAccount,
    GoogleSignInAuthentication,
)
from login_authentication.repository import AuthenticationRepository
from login_cache import CacheClient

SIGNING_KEY = "test-signing-key-long-enough-for-hs256-hmac"


class MockTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport that returns preconfigured responses.

    Each call to handle_async_request pops the next entry from the list. An
    entry that is an exception is raised instead of returned. If the list is
    exhausted, returns a 500 error.
    """

    def __init__(self, responses: list[httpx.Response | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            response.stream = httpx.ByteStream(response.content)
            return response
        return httpx.Response(500, json={"error": "No more mock responses"})


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider.

    Set `errors[<method name>]` to make that method raise.
    """

    def __init__(self) -> None:
        super().__init__()
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []
        self.popup_credential: AuthCredential | None = AuthCredential(
            provider_id="google.com", id_token="popup-id-token"
        )

    def emit(self, user: ProviderUser | None) -> None:
        self._set_session(user)

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.errors:
            raise self.errors[name]

    async def create_user_with_email_and_password(
        self, email: str, password: str
    ) -> UserCredential:
        self._record("create_user_with_email_and_password", email)
        user = ProviderUser(uid="new-uid", email=email)
        self._set_session(user)
        return UserCredential(user=user)

    async def sign_in_with_email_and_password(self, email: str, password: str) -> UserCredential:
        self._record("sign_in_with_email_and_password", email)
        user = ProviderUser(uid="existing-uid", email=email)
        self._set_session(user)
        return UserCredential(user=user)

    async def sign_in_with_popup(self, provider: GoogleAuthProvider) -> UserCredential:
        self._record("sign_in_with_popup", provider.provider_id)
        user = ProviderUser(uid="google-uid", email="popup@example.com")
        self._set_session(user)
        return UserCredential(user=user, credential=self.popup_credential)

    async def sign_in_with_credential(self, credential: AuthCredential) -> UserCredential:
        self._record("sign_in_with_credential", credential)
        user = ProviderUser(uid="google-uid", email="google@example.com")
        self._set_session(user)
        return UserCredential(user=user, credential=credential)

    async def sign_out(self) -> None:
        self._record("sign_out")
        await super().sign_out()


class FakeGoogleSignIn:
    """In-memory stand-in for GoogleSignIn."""

    def __init__(self) -> None:
        self.account: GoogleSignInAccount | None = GoogleSignInAccount(
            id="google-sub",
            email="google@example.com",
            tokens=GoogleSignInAuthentication(access_token="g-access", id_token="g-id"),
        )
        self.sign_in_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.sign_in_calls = 0
        self.sign_out_calls = 0
        self.closed = False

    async def sign_in(self) -> GoogleSignInAccount | None:
        self.sign_in_calls += 1
        if self.sign_in_error:
            raise self.sign_in_error
        return self.account

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error:
            raise self.sign_out_error

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> AuthSettings:
    return AuthSettings(
        firebase_api_key="test-api-key",
        google_client_id="test-client-id.apps.googleusercontent.com",
        google_client_secret="test-client-secret",
    )


@pytest.fixture
def mock_transport() -> Callable[..., MockTransport]:
    """Factory for MockTransport instances."""

    def _make(responses: list[httpx.Response | Exception] | None = None) -> MockTransport:
        return MockTransport(responses=responses)

    return _make


@pytest.fixture
def make_id_token() -> Callable[..., str]:
    """Build a signed JWT with Firebase/Google-shaped profile claims."""

    def _make(**claims: Any) -> str:
        payload: dict[str, Any] = {"exp": int(time.time()) + 3600, **claims}
        return pyjwt.encode(payload, SIGNING_KEY, algorithm="HS256")

    return _make


@pytest.fixture
def cache() -> CacheClient:
    return CacheClient()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def google_sign_in() -> FakeGoogleSignIn:
    return FakeGoogleSignIn()


@pytest.fixture
def repository(cache, identity_provider, google_sign_in) -> AuthenticationRepository:
    return AuthenticationRepository(
        cache=cache,
        identity_provider=identity_provider,
        google_sign_in=google_sign_in,
        is_web=False,
    )
