"""Read profile claims out of ID tokens returned by the identity service.

The identity service has already verified these tokens by the time we hold
them; we only peek at the payload to fill in profile fields a REST response
left out. Signature verification and refresh remain the provider's job.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt as pyjwt

logger = logging.getLogger(__name__)


def unverified_claims(token: str | None) -> dict[str, Any]:
    """Decode a JWT payload without verifying it.

    Returns an empty dict for a missing or malformed token.
    """
    if not token:
        return {}
    try:
        claims = pyjwt.decode(token, options={"verify_signature": False})
    except pyjwt.PyJWTError as e:
        logger.debug(f"Ignoring undecodable ID token: {e}")
        return {}
    return claims if isinstance(claims, dict) else {}


def subject(claims: dict[str, Any]) -> str:
    """Return the account id from a claims dict (`user_id` for Firebase, `sub` otherwise)."""
    return str(claims.get("user_id") or claims.get("sub") or "")
