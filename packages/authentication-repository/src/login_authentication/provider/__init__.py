"""Identity provider adapters.

The repository depends only on the IdentityProvider contract and GoogleSignIn.
FirebaseAuthClient is the production adapter; tests substitute in-memory fakes.
"""

from __future__ import annotations

from login_authentication.provider.base import (
    AuthCredential,
    GoogleAuthProvider,
    IdentityProvider,
    ProviderAuthError,
    ProviderUser,
    UserCredential,
)
from login_authentication.provider.firebase import FirebaseAuthClient
from login_authentication.provider.google import (
    GoogleOAuthFlow,
    GoogleSignIn,
    GoogleSignInAccount,
    GoogleSignInAuthentication,
)

__all__ = [
    "AuthCredential",
    "FirebaseAuthClient",
    "GoogleAuthProvider",
    "GoogleOAuthFlow",
    "GoogleSignIn",
    "GoogleSignInAccount",
    "GoogleSignInAuthentication",
    "IdentityProvider",
    "ProviderAuthError",
    "ProviderUser",
    "UserCredential",
]
