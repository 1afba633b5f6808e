"""Authentication settings, read from environment variables.

  FIREBASE_API_KEY          — Web API key of the Firebase project (required)
  FIREBASE_AUTH_BASE_URL    — Identity Toolkit REST base URL (override for the emulator)
  GOOGLE_CLIENT_ID          — OAuth client used for Google sign-in
  GOOGLE_CLIENT_SECRET      — OAuth client secret (installed-app / TV clients)
  GOOGLE_OAUTH_BASE_URL     — Google OAuth 2.0 endpoint base URL
  LOGIN_IS_WEB              — "true" selects the browser popup flow for Google sign-in
  LOGIN_HTTP_TIMEOUT        — per-request timeout in seconds (default 30)

Secrets are only ever read from the environment; they are never logged.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

_TRUTHY = ("1", "true", "yes", "on")


class AuthSettings(BaseModel):
    """Connection settings for the identity provider and Google sign-in."""

    firebase_api_key: str
    firebase_auth_base_url: str = "https://identitytoolkit.googleapis.com/v1/"
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_oauth_base_url: str = "https://oauth2.googleapis.com/"
    google_authorize_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_scopes: list[str] = Field(default_factory=lambda: ["openid", "email", "profile"])
    request_uri: str = "http://localhost"
    is_web: bool = False
    http_timeout: float = 30.0


def _env(name: str) -> str | None:
    return (os.environ.get(name, "") or "").strip() or None


def load_settings() -> AuthSettings:
    """Build AuthSettings from the environment.

    Raises:
        ValueError: FIREBASE_API_KEY is not set or empty.
    """
    api_key = _env("FIREBASE_API_KEY")
    if not api_key:
        raise ValueError("Environment variable 'FIREBASE_API_KEY' is not set or empty")

    overrides: dict[str, object] = {}
    if base_url := _env("FIREBASE_AUTH_BASE_URL"):
        overrides["firebase_auth_base_url"] = base_url
    if oauth_url := _env("GOOGLE_OAUTH_BASE_URL"):
        overrides["google_oauth_base_url"] = oauth_url
    if timeout := _env("LOGIN_HTTP_TIMEOUT"):
        overrides["http_timeout"] = float(timeout)

    return AuthSettings(
        firebase_api_key=api_key,
        google_client_id=_env("GOOGLE_CLIENT_ID"),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET"),
        is_web=(_env("LOGIN_IS_WEB") or "").lower() in _TRUTHY,
        **overrides,
    )
