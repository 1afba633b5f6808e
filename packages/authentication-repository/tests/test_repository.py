"""Tests for AuthenticationRepository — the session source.

The identity provider and Google sign-in are in-memory fakes, so these tests
cover the repository's own behavior:
  - session notifications mapped to User values and cached before delivery
  - provider errors translated to the operation family's typed failure
  - Google sign-in path selection (popup vs native)
  - concurrent sign-out with a single generic failure
"""

from __future__ import annotations

import pytest
from login_authentication.failures import (
    LogInWithEmailAndPasswordFailure,
    LogInWithGoogleFailure,
    LogOutFailure,
    SignUpWithEmailAndPasswordFailure,
)
from login_authentication.provider.base import ProviderAuthError, ProviderUser
from login_authentication.provider.firebase import FirebaseAuthClient
from login_authentication.provider.google import GoogleSignIn
from login_authentication.repository import AuthenticationRepository, to_user
from login_shared.models import User

# ---------------------------------------------------------------------------
# User stream
# ---------------------------------------------------------------------------


class TestUserStream:
    def test_to_user_maps_profile_fields(self) -> None:
        raw = ProviderUser(
            uid="u1",
            email="a@b.com",
            display_name="Ada",
            photo_url="https://example.com/a.png",
            id_token="secret-token",
        )
        assert to_user(raw) == User(
            id="u1", email="a@b.com", name="Ada", photo="https://example.com/a.png"
        )
        assert to_user(None) == User.empty

    async def test_emits_user_for_present_session(self, repository, identity_provider) -> None:
        stream = repository.user()
        assert await anext(stream) == User.empty

        identity_provider.emit(ProviderUser(uid="u1", email="a@b.com"))
        assert await anext(stream) == User(id="u1", email="a@b.com")
        await stream.aclose()

    async def test_emits_empty_after_session_ends(self, repository, identity_provider) -> None:
        identity_provider.emit(ProviderUser(uid="u1", email="a@b.com"))
        stream = repository.user()
        assert await anext(stream) == User(id="u1", email="a@b.com")

        identity_provider.emit(None)
        assert await anext(stream) == User.empty
        await stream.aclose()

    async def test_repeated_notifications_are_not_deduplicated(
        self, repository, identity_provider
    ) -> None:
        stream = repository.user()
        await anext(stream)
        identity_provider.emit(ProviderUser(uid="u1"))
        identity_provider.emit(ProviderUser(uid="u1"))
        assert await anext(stream) == User(id="u1")
        assert await anext(stream) == User(id="u1")
        await stream.aclose()

    async def test_current_user_is_empty_before_first_notification(self, repository) -> None:
        assert repository.current_user == User.empty

    async def test_current_user_is_cached_before_delivery(
        self, repository, identity_provider, cache
    ) -> None:
        stream = repository.user()
        await anext(stream)
        identity_provider.emit(ProviderUser(uid="u1", email="a@b.com"))
        delivered = await anext(stream)

        assert repository.current_user == delivered
        assert cache.read(AuthenticationRepository.USER_CACHE_KEY, User) == delivered
        await stream.aclose()

    async def test_current_user_has_no_side_effects(self, repository, identity_provider) -> None:
        assert repository.current_user == User.empty
        assert repository.current_user == User.empty
        assert identity_provider.calls == []

    async def test_closing_stream_releases_subscription(
        self, repository, identity_provider
    ) -> None:
        stream = repository.user()
        await anext(stream)
        assert len(identity_provider._subscribers) == 1

        await stream.aclose()
        assert len(identity_provider._subscribers) == 0


# ---------------------------------------------------------------------------
# Sign-up and email/password sign-in
# ---------------------------------------------------------------------------


class TestSignUp:
    async def test_success_changes_session(self, repository, identity_provider) -> None:
        await repository.sign_up(email="new@example.com", password="s3cretpass")
        assert identity_provider.calls == [
            ("create_user_with_email_and_password", "new@example.com")
        ]
        assert identity_provider.current_user.email == "new@example.com"

    async def test_weak_password(self, repository, identity_provider) -> None:
        identity_provider.errors["create_user_with_email_and_password"] = ProviderAuthError(
            "weak-password"
        )
        with pytest.raises(SignUpWithEmailAndPasswordFailure) as exc_info:
            await repository.sign_up(email="new@example.com", password="123")
        assert exc_info.value.message == "The password is not strong enough"
        assert isinstance(exc_info.value.__cause__, ProviderAuthError)

    async def test_unrecognized_code_is_generic(self, repository, identity_provider) -> None:
        identity_provider.errors["create_user_with_email_and_password"] = ProviderAuthError(
            "quota-exceeded"
        )
        with pytest.raises(SignUpWithEmailAndPasswordFailure) as exc_info:
            await repository.sign_up(email="new@example.com", password="s3cretpass")
        assert exc_info.value.code is None
        assert exc_info.value.message.startswith("An unknown exception occurred")

    async def test_unexpected_error_is_generic(self, repository, identity_provider) -> None:
        identity_provider.errors["create_user_with_email_and_password"] = RuntimeError("boom")
        with pytest.raises(SignUpWithEmailAndPasswordFailure) as exc_info:
            await repository.sign_up(email="new@example.com", password="s3cretpass")
        assert exc_info.value.code is None


class TestLogInWithEmailAndPassword:
    async def test_success(self, repository, identity_provider) -> None:
        await repository.log_in_with_email_and_password(email="a@b.com", password="pw123456")
        assert identity_provider.calls == [("sign_in_with_email_and_password", "a@b.com")]

    @pytest.mark.parametrize(
        "code,message",
        [
            ("wrong-password", "Wrong password provided for this user"),
            ("user-not-found", "No user found for this email"),
            ("user-disabled", "This user has been disabled. Please contact support for help"),
        ],
    )
    async def test_code_translation(self, repository, identity_provider, code, message) -> None:
        identity_provider.errors["sign_in_with_email_and_password"] = ProviderAuthError(code)
        with pytest.raises(LogInWithEmailAndPasswordFailure) as exc_info:
            await repository.log_in_with_email_and_password(email="a@b.com", password="x")
        assert exc_info.value.message == message

    async def test_unexpected_error_is_generic(self, repository, identity_provider) -> None:
        identity_provider.errors["sign_in_with_email_and_password"] = ConnectionError("offline")
        with pytest.raises(LogInWithEmailAndPasswordFailure) as exc_info:
            await repository.log_in_with_email_and_password(email="a@b.com", password="x")
        assert exc_info.value.message == "An unknown exception occurred"


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


class TestLogInWithGoogle:
    async def test_native_flow_exchanges_google_tokens(
        self, repository, identity_provider, google_sign_in
    ) -> None:
        await repository.log_in_with_google()

        assert google_sign_in.sign_in_calls == 1
        name, credential = identity_provider.calls[-1]
        assert name == "sign_in_with_credential"
        assert credential.provider_id == "google.com"
        assert credential.access_token == "g-access"
        assert credential.id_token == "g-id"

    async def test_popup_flow_on_web(self, cache, identity_provider, google_sign_in) -> None:
        repository = AuthenticationRepository(
            cache=cache,
            identity_provider=identity_provider,
            google_sign_in=google_sign_in,
            is_web=True,
        )
        await repository.log_in_with_google()

        assert google_sign_in.sign_in_calls == 0
        assert [name for name, _ in identity_provider.calls] == [
            "sign_in_with_popup",
            "sign_in_with_credential",
        ]
        assert identity_provider.calls[-1][1].id_token == "popup-id-token"

    async def test_popup_without_credential_fails(
        self, cache, identity_provider, google_sign_in
    ) -> None:
        identity_provider.popup_credential = None
        repository = AuthenticationRepository(
            cache=cache,
            identity_provider=identity_provider,
            google_sign_in=google_sign_in,
            is_web=True,
        )
        with pytest.raises(LogInWithGoogleFailure) as exc_info:
            await repository.log_in_with_google()
        assert exc_info.value.code is None

    async def test_cancelled_native_sign_in_fails(
        self, repository, identity_provider, google_sign_in
    ) -> None:
        google_sign_in.account = None
        with pytest.raises(LogInWithGoogleFailure) as exc_info:
            await repository.log_in_with_google()
        assert exc_info.value.message == "An unknown exception occurred"
        assert identity_provider.calls == []

    async def test_provider_code_translation(self, repository, identity_provider) -> None:
        identity_provider.errors["sign_in_with_credential"] = ProviderAuthError(
            "account-exists-with-different-credential"
        )
        with pytest.raises(LogInWithGoogleFailure) as exc_info:
            await repository.log_in_with_google()
        assert exc_info.value.code == "account-exists-with-different-credential"
        assert exc_info.value.message.startswith("An account already exists")

    async def test_handshake_error_code_translation(self, repository, google_sign_in) -> None:
        google_sign_in.sign_in_error = ProviderAuthError("invalid-credential")
        with pytest.raises(LogInWithGoogleFailure) as exc_info:
            await repository.log_in_with_google()
        assert exc_info.value.message == "Error occurred while accessing credentials. Try again."

    async def test_google_failure_is_not_an_email_failure(self, repository, google_sign_in) -> None:
        google_sign_in.sign_in_error = RuntimeError("platform error")
        with pytest.raises(LogInWithGoogleFailure):
            await repository.log_in_with_google()


# ---------------------------------------------------------------------------
# Log out
# ---------------------------------------------------------------------------


class TestLogOut:
    async def test_signs_out_of_both_providers(
        self, repository, identity_provider, google_sign_in
    ) -> None:
        identity_provider.emit(ProviderUser(uid="u1"))
        await repository.log_out()

        assert ("sign_out", None) in identity_provider.calls
        assert google_sign_in.sign_out_calls == 1
        assert identity_provider.current_user is None

    async def test_log_out_triggers_empty_user_on_stream(
        self, repository, identity_provider
    ) -> None:
        identity_provider.emit(ProviderUser(uid="u1"))
        stream = repository.user()
        assert await anext(stream) == User(id="u1")

        await repository.log_out()
        assert await anext(stream) == User.empty
        await stream.aclose()

    async def test_provider_sign_out_error(self, repository, identity_provider) -> None:
        identity_provider.errors["sign_out"] = ProviderAuthError("user-disabled")
        with pytest.raises(LogOutFailure) as exc_info:
            await repository.log_out()
        assert exc_info.value.code is None
        assert exc_info.value.message == "An unknown exception occurred while logging out"

    async def test_google_sign_out_error(self, repository, google_sign_in) -> None:
        google_sign_in.sign_out_error = RuntimeError("revoke failed")
        with pytest.raises(LogOutFailure):
            await repository.log_out()


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("FIREBASE_API_KEY", "env-api-key")
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-client-id")
        monkeypatch.setenv("LOGIN_IS_WEB", "true")

        repository = AuthenticationRepository()
        assert isinstance(repository._identity_provider, FirebaseAuthClient)
        assert isinstance(repository._google_sign_in, GoogleSignIn)
        assert repository.is_web is True
        assert repository.current_user == User.empty

    def test_missing_api_key_raises(self, monkeypatch) -> None:
        monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
        with pytest.raises(ValueError, match="FIREBASE_API_KEY"):
            AuthenticationRepository()

    def test_injected_collaborators_skip_environment(
        self, monkeypatch, identity_provider, google_sign_in
    ) -> None:
        monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
        repository = AuthenticationRepository(
            identity_provider=identity_provider, google_sign_in=google_sign_in, is_web=False
        )
        assert repository.is_web is False

    def test_is_web_defaults_to_native_when_providers_injected(
        self, monkeypatch, identity_provider, google_sign_in
    ) -> None:
        monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
        monkeypatch.setenv("LOGIN_IS_WEB", "true")
        repository = AuthenticationRepository(
            identity_provider=identity_provider, google_sign_in=google_sign_in
        )
        assert repository.is_web is False

    def test_uses_injected_empty_cache(self, cache, identity_provider, google_sign_in) -> None:
        assert len(cache) == 0
        repository = AuthenticationRepository(cache, identity_provider, google_sign_in)

        assert repository._cache is cache
        cache.write(AuthenticationRepository.USER_CACHE_KEY, User(id="u1"))
        assert repository.current_user == User(id="u1")

    async def test_close_releases_collaborators(self, repository, google_sign_in) -> None:
        await repository.close()
        assert google_sign_in.closed
