"""Google sign-in — the federated sign-in provider.

Two OAuth 2.0 handshakes produce the Google access/id token pair that the
identity provider exchanges for a session:

  - Device authorization grant (native): the user opens a verification URL on
    any device and types a short code while we poll the token endpoint.
    Used by GoogleSignIn.sign_in().
  - Authorization code + PKCE with a loopback redirect (browser popup): we
    open the system browser and catch the redirect on 127.0.0.1. Used by the
    identity provider's sign_in_with_popup().

Both return None when the user declines or abandons the handshake, matching
a cancelled native sign-in. Other OAuth errors raise ProviderAuthError.

Google sign-out is independent of the identity provider's: it revokes the
token we hold and forgets the account.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import secrets
import webbrowser
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
from pydantic import BaseModel, ConfigDict
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from login_authentication.config import AuthSettings
from login_authentication.provider.base import ProviderAuthError
from login_authentication.provider.tokens import subject, unverified_claims

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"

_REDIRECT_PAGE = (
    b"<html><body><p>Sign-in complete. You can close this window.</p></body></html>"
)


class GoogleSignInAuthentication(BaseModel):
    """Token pair produced by a completed Google handshake."""

    model_config = ConfigDict(frozen=True)

    access_token: str | None = None
    id_token: str | None = None


class GoogleSignInAccount(BaseModel):
    """The Google account that completed the native handshake."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    tokens: GoogleSignInAuthentication

    async def authentication(self) -> GoogleSignInAuthentication:
        return self.tokens


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _pkce_pair() -> tuple[str, str]:
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def _log_user_code(verification_url: str, user_code: str) -> None:
    logger.info(f"To sign in with Google, visit {verification_url} and enter code {user_code}")


class GoogleOAuthFlow:
    """Runs Google OAuth 2.0 handshakes over httpx."""

    def __init__(
        self,
        settings: AuthSettings,
        *,
        open_browser: Callable[[str], Any] = webbrowser.open,
        on_user_code: Callable[[str, str], None] = _log_user_code,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self._open_browser = open_browser
        self._on_user_code = on_user_code
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None

    def _require_client_id(self) -> str:
        if not self.settings.google_client_id:
            raise ValueError("Environment variable 'GOOGLE_CLIENT_ID' is not set or empty")
        return self.settings.google_client_id

    def _client_auth(self) -> dict[str, str]:
        data = {"client_id": self._require_client_id()}
        if self.settings.google_client_secret:
            data["client_secret"] = self.settings.google_client_secret
        return data

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.google_oauth_base_url,
                timeout=self.settings.http_timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _post(self, url: str, data: dict[str, str]) -> httpx.Response:
        client = await self._get_client()
        return await client.post(url, data=data)

    async def device_flow(self) -> GoogleSignInAuthentication | None:
        """Run the device authorization grant until the user approves or declines."""
        response = await self._post(
            "device/code",
            {
                "client_id": self._require_client_id(),
                "scope": " ".join(self.settings.google_scopes),
            },
        )
        grant = _json(response)
        if response.is_error or "device_code" not in grant:
            raise ProviderAuthError(
                "invalid-credential",
                grant.get("error_description")
                or f"Device code request failed ({response.status_code})",
            )

        verification_url = grant.get("verification_url") or grant.get("verification_uri") or ""
        self._on_user_code(verification_url, grant["user_code"])

        interval = float(grant.get("interval", 5))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + float(grant.get("expires_in", 1800))
        poll = {
            **self._client_auth(),
            "device_code": grant["device_code"],
            "grant_type": DEVICE_CODE_GRANT,
        }

        while loop.time() < deadline:
            await self._sleep(interval)
            response = await self._post("token", poll)
            data = _json(response)
            if not response.is_error:
                return GoogleSignInAuthentication(
                    access_token=data.get("access_token"), id_token=data.get("id_token")
                )

            error = data.get("error", "")
            if error == "authorization_pending":
                continue
            if error == "slow_down":
                interval += 5
                continue
            if error in ("access_denied", "expired_token"):
                logger.info(f"Google device sign-in ended without approval ({error})")
                return None
            raise ProviderAuthError("invalid-credential", data.get("error_description") or error)

        logger.info("Google device sign-in expired before approval")
        return None

    async def browser_flow(self) -> GoogleSignInAuthentication | None:
        """Open the system browser and catch the authorization code on a loopback port."""
        client_id = self._require_client_id()
        verifier, challenge = _pkce_pair()
        state = secrets.token_urlsafe(16)
        redirect: asyncio.Future[dict[str, str]] = asyncio.get_running_loop().create_future()

        async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            request_line = await reader.readline()
            while (line := await reader.readline()) and line not in (b"\r\n", b"\n"):
                pass
            parts = request_line.decode("latin-1").split()
            target = parts[1] if len(parts) >= 2 else "/"
            params = {k: v[0] for k, v in parse_qs(urlparse(target).query).items()}

            writer.write(
                b"HTTP/1.1 200 OK\r\nContent-Type: text/html; charset=utf-8\r\n"
                + f"Content-Length: {len(_REDIRECT_PAGE)}\r\nConnection: close\r\n\r\n".encode()
                + _REDIRECT_PAGE
            )
            await writer.drain()
            writer.close()
            await writer.wait_closed()

            # Browsers also ask for /favicon.ico; only the OAuth redirect resolves the flow.
            if ("code" in params or "error" in params) and not redirect.done():
                redirect.set_result(params)

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        redirect_uri = f"http://127.0.0.1:{port}/"
        query = urlencode(
            {
                "client_id": client_id,
                "redirect_uri": redirect_uri,
                "response_type": "code",
                "scope": " ".join(self.settings.google_scopes),
                "state": state,
                "code_challenge": challenge,
                "code_challenge_method": "S256",
            }
        )

        async with server:
            self._open_browser(f"{self.settings.google_authorize_url}?{query}")
            params = await redirect

        if params.get("state") != state:
            raise ProviderAuthError("invalid-credential", "OAuth state mismatch on redirect")
        if "error" in params:
            logger.info(f"Google browser sign-in ended without approval ({params['error']})")
            return None

        response = await self._post(
            "token",
            {
                **self._client_auth(),
                "code": params["code"],
                "code_verifier": verifier,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        data = _json(response)
        if response.is_error:
            raise ProviderAuthError(
                "invalid-credential", data.get("error_description") or data.get("error")
            )
        return GoogleSignInAuthentication(
            access_token=data.get("access_token"), id_token=data.get("id_token")
        )

    async def revoke(self, token: str) -> None:
        """Revoke a Google token. An already-invalid token counts as revoked."""
        response = await self._post("revoke", {"token": token})
        if response.is_success:
            return
        if response.status_code == 400 and _json(response).get("error") == "invalid_token":
            logger.info("Google token was already invalid; treating as revoked")
            return
        raise ProviderAuthError(
            "sign-out-failed", f"Token revocation failed ({response.status_code})"
        )


class GoogleSignIn:
    """Native Google sign-in with its own sign-out."""

    def __init__(
        self,
        settings: AuthSettings | None = None,
        *,
        oauth_flow: GoogleOAuthFlow | None = None,
    ) -> None:
        if oauth_flow is None:
            if settings is None:
                raise ValueError("GoogleSignIn needs either settings or an oauth_flow")
            oauth_flow = GoogleOAuthFlow(settings)
        self._oauth_flow = oauth_flow
        self._current_user: GoogleSignInAccount | None = None

    @property
    def current_user(self) -> GoogleSignInAccount | None:
        return self._current_user

    async def sign_in(self) -> GoogleSignInAccount | None:
        """Run the native handshake. Returns None if the user cancels."""
        tokens = await self._oauth_flow.device_flow()
        if tokens is None:
            return None

        claims = unverified_claims(tokens.id_token)
        account = GoogleSignInAccount(
            id=subject(claims),
            email=claims.get("email"),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
            tokens=tokens,
        )
        self._current_user = account
        return account

    async def sign_out(self) -> None:
        account, self._current_user = self._current_user, None
        if account is not None and account.tokens.access_token:
            await self._oauth_flow.revoke(account.tokens.access_token)

    async def close(self) -> None:
        await self._oauth_flow.close()
