"""Firebase Authentication adapter over the Identity Toolkit REST API.

Auth: Web API key as the `key` query parameter.
Endpoints: accounts:signUp, accounts:signInWithPassword, accounts:signInWithIdp.
Base URL: https://identitytoolkit.googleapis.com/v1/ (override for the emulator).

The REST API reports failures as upper-case strings in `error.message`
(e.g. "EMAIL_EXISTS", "WEAK_PASSWORD : Password should be at least 6
characters"). We normalise them to the SDK-style codes the failure taxonomy
is keyed on ("email-already-in-use", "weak-password", ...). Unknown strings
pass through lower-cased with dashes, which the taxonomy resolves to its
generic message.

Sessions are client-side: sign-out simply forgets the tokens.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from login_authentication.config import AuthSettings
from login_authentication.provider.base import (
    AuthCredential,
    GoogleAuthProvider,
    IdentityProvider,
    ProviderAuthError,
    ProviderUser,
    UserCredential,
)
from login_authentication.provider.google import GoogleOAuthFlow
from login_authentication.provider.tokens import subject, unverified_claims

logger = logging.getLogger(__name__)

_REST_ERROR_CODES: dict[str, str] = {
    "EMAIL_EXISTS": "email-already-in-use",
    "OPERATION_NOT_ALLOWED": "operation-not-allowed",
    "WEAK_PASSWORD": "weak-password",
    "INVALID_EMAIL": "invalid-email",
    "MISSING_EMAIL": "invalid-email",
    "USER_DISABLED": "user-disabled",
    "EMAIL_NOT_FOUND": "user-not-found",
    "USER_NOT_FOUND": "user-not-found",
    "INVALID_PASSWORD": "wrong-password",
    "MISSING_PASSWORD": "wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "invalid-credential",
    "INVALID_IDP_RESPONSE": "invalid-credential",
    "INVALID_CREDENTIAL": "invalid-credential",
    "FEDERATED_USER_ID_ALREADY_LINKED": "credential-already-in-use",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "too-many-requests",
    "INVALID_CODE": "invalid-verification-code",
    "INVALID_SESSION_INFO": "invalid-verification-id",
    "INVALID_API_KEY": "invalid-api-key",
}


def error_code(rest_message: str) -> str:
    """Map an Identity Toolkit error string to an SDK-style error code."""
    key = rest_message.split(" : ", 1)[0].strip().split(" ", 1)[0]
    return _REST_ERROR_CODES.get(key, key.lower().replace("_", "-") or "internal-error")


class FirebaseAuthClient(IdentityProvider):
    """Identity provider backed by Firebase Authentication."""

    def __init__(
        self, settings: AuthSettings, *, oauth_flow: GoogleOAuthFlow | None = None
    ) -> None:
        super().__init__()
        self.settings = settings
        self._oauth_flow = oauth_flow
        self._client: httpx.AsyncClient | None = None
        self.request_count: int = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with the API key bound."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                params={"key": self.settings.firebase_api_key},
                timeout=self.settings.http_timeout,
            )
        return self._client

    def _endpoint(self, name: str) -> str:
        # Endpoint names contain a colon, so they are joined rather than resolved as relative URLs.
        return f"{self.settings.firebase_auth_base_url.rstrip('/')}/{name}"

    async def close(self) -> None:
        """Close the underlying HTTP clients."""
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._oauth_flow:
            await self._oauth_flow.close()

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _request_with_retry(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        client = await self._get_client()
        self.request_count += 1
        return await client.post(self._endpoint(url), json=payload)

    async def _call(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to an accounts endpoint, raising ProviderAuthError on any failure."""
        try:
            response = await self._request_with_retry(url, payload)
        except httpx.TransportError as e:
            raise ProviderAuthError("network-request-failed", str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            message = str((data.get("error") or {}).get("message") or response.status_code)
            code = error_code(message)
            logger.info(f"Firebase {url} failed: {message} -> {code}")
            raise ProviderAuthError(code, message)
        return data

    def _user_from_payload(self, data: dict[str, Any]) -> ProviderUser:
        """Build the session from a sign-in response, backfilling from ID token claims."""
        claims = unverified_claims(data.get("idToken"))
        uid = data.get("localId") or subject(claims)
        if not uid:
            raise ProviderAuthError("internal-error", "Sign-in response carried no user id")
        return ProviderUser(
            uid=uid,
            email=data.get("email") or claims.get("email"),
            display_name=data.get("displayName") or claims.get("name"),
            photo_url=data.get("photoUrl") or claims.get("picture"),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    def _complete_sign_in(
        self, data: dict[str, Any], credential: AuthCredential | None = None
    ) -> UserCredential:
        user = self._user_from_payload(data)
        self._set_session(user)
        return UserCredential(user=user, credential=credential)

    async def create_user_with_email_and_password(
        self, email: str, password: str
    ) -> UserCredential:
        data = await self._call(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._complete_sign_in(data)

    async def sign_in_with_email_and_password(self, email: str, password: str) -> UserCredential:
        data = await self._call(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._complete_sign_in(data)

    async def sign_in_with_credential(self, credential: AuthCredential) -> UserCredential:
        post_body: dict[str, str] = {"providerId": credential.provider_id}
        if credential.id_token:
            post_body["id_token"] = credential.id_token
        if credential.access_token:
            post_body["access_token"] = credential.access_token

        data = await self._call(
            "accounts:signInWithIdp",
            {
                "postBody": urlencode(post_body),
                "requestUri": self.settings.request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        if data.get("needConfirmation"):
            raise ProviderAuthError(
                "account-exists-with-different-credential",
                f"{data.get('email')} is already linked to another sign-in method",
            )

        idp_credential = AuthCredential(
            provider_id=credential.provider_id,
            access_token=data.get("oauthAccessToken") or credential.access_token,
            id_token=data.get("oauthIdToken") or credential.id_token,
        )
        return self._complete_sign_in(data, idp_credential)

    async def sign_in_with_popup(self, provider: GoogleAuthProvider) -> UserCredential:
        if self._oauth_flow is None:
            self._oauth_flow = GoogleOAuthFlow(self.settings)
        tokens = await self._oauth_flow.browser_flow()
        if tokens is None:
            raise ProviderAuthError("popup-closed-by-user", "The sign-in popup was closed")
        credential = provider.credential(
            access_token=tokens.access_token, id_token=tokens.id_token
        )
        return await self.sign_in_with_credential(credential)
