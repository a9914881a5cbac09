# ticketing_auth/core/identity_providers.py
"""
External identity providers.

`IdentityProviderGateway.resolve_identity(provider, token)` exchanges a
provider token for an ExternalIdentity:

  - google:   ID token verified with google-auth against GOOGLE_CLIENT_IDS
  - apple:    identity token (JWT) verified with python-jose against
              Apple's published keys
  - facebook: user access token exchanged through the Graph API

Every network call is bounded by PROVIDER_TIMEOUT_SECONDS. Any failure
(bad token, timeout, transport error, missing e-mail) surfaces as
ProviderError and is never retried.
"""
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from jose import JWTError, jwt

from ticketing_auth.core.config import Settings, get_settings
from ticketing_auth.core.errors import ProviderError, UnsupportedProvider

logger = logging.getLogger(__name__)

GOOGLE = "google"
APPLE = "apple"
FACEBOOK = "facebook"


@dataclass(frozen=True)
class ExternalIdentity:
    """Canonical identity returned by a provider."""

    provider: str
    external_id: str
    email: str
    name: str = ""
    avatar: str | None = None


class IdentityProviderGateway:
    """
    Boundary to Google, Apple and Facebook.

    Args:
        settings: provider audiences, URLs and timeout
        transport: optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings
        self.timeout = settings.PROVIDER_TIMEOUT_SECONDS
        self.transport = transport

    def resolve_identity(self, provider: str, token: str) -> ExternalIdentity:
        resolvers: dict[str, Callable[[str], ExternalIdentity]] = {
            GOOGLE: self._resolve_google,
            APPLE: self._resolve_apple,
            FACEBOOK: self._resolve_facebook,
        }
        resolver = resolvers.get(provider)
        if resolver is None:
            raise UnsupportedProvider()

        try:
            return resolver(token)
        except ProviderError:
            raise
        except (
            ValueError,
            KeyError,
            TypeError,
            JWTError,
            httpx.HTTPError,
            google_exceptions.GoogleAuthError,
        ) as exc:
            logger.warning("%s token could not be verified: %s", provider, exc)
            raise ProviderError() from exc

    # ---- helpers ----

    def _http(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def _identity(
        self,
        provider: str,
        external_id: Any,
        email: Any,
        name: Any = None,
        avatar: Any = None,
    ) -> ExternalIdentity:
        email = str(email or "").strip().lower()
        if not email:
            logger.warning("%s identity has no e-mail address", provider)
            raise ProviderError()
        if not external_id:
            logger.warning("%s identity has no subject", provider)
            raise ProviderError()

        return ExternalIdentity(
            provider=provider,
            external_id=str(external_id),
            email=email,
            # Empty when the provider does not share a name (Apple only
            # sends it on the very first sign-in)
            name=str(name or "").strip(),
            avatar=avatar or None,
        )

    # ---- providers ----

    def _resolve_google(self, token: str) -> ExternalIdentity:
        audiences = self.settings.google_client_ids
        if not audiences:
            logger.error("GOOGLE_CLIENT_IDS not configured")
            raise ProviderError()

        # Bound the certificate fetch made during verification
        request = functools.partial(google_requests.Request(), timeout=self.timeout)
        idinfo = id_token.verify_oauth2_token(
            token,
            request,
            audiences if len(audiences) > 1 else audiences[0],
            clock_skew_in_seconds=60,
        )
        return self._identity(
            GOOGLE,
            idinfo.get("sub"),
            idinfo.get("email"),
            idinfo.get("name"),
            idinfo.get("picture"),
        )

    def _resolve_apple(self, token: str) -> ExternalIdentity:
        audiences = self.settings.apple_client_ids
        if not audiences:
            logger.error("APPLE_CLIENT_IDS not configured")
            raise ProviderError()

        header = jwt.get_unverified_header(token)
        with self._http() as client:
            response = client.get(self.settings.APPLE_KEYS_URL)
            response.raise_for_status()
            keys = response.json()["keys"]

        key = next((k for k in keys if k.get("kid") == header.get("kid")), None)
        if key is None:
            logger.warning("Apple signing key %s not found", header.get("kid"))
            raise ProviderError()

        # jose only checks a single audience, so aud is checked below
        claims = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            issuer=self.settings.APPLE_ISSUER,
            options={"verify_aud": False},
        )
        aud = claims.get("aud")
        token_audiences = [aud] if isinstance(aud, str) else list(aud or [])
        if not set(token_audiences) & set(audiences):
            logger.warning("Apple token audience %s not accepted", aud)
            raise ProviderError()

        return self._identity(APPLE, claims.get("sub"), claims.get("email"))

    def _resolve_facebook(self, token: str) -> ExternalIdentity:
        with self._http() as client:
            response = client.get(
                f"{self.settings.FACEBOOK_GRAPH_URL}/me",
                params={
                    "fields": "id,name,email,picture.type(large)",
                    "access_token": token,
                },
            )
            response.raise_for_status()
            data = response.json()

        picture = (data.get("picture") or {}).get("data") or {}
        return self._identity(
            FACEBOOK,
            data.get("id"),
            data.get("email"),
            data.get("name"),
            picture.get("url"),
        )


def get_identity_gateway() -> IdentityProviderGateway:
    """FastAPI dependency; override in tests."""
    return IdentityProviderGateway(get_settings())
