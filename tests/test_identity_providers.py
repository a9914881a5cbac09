"""Tests for the external identity provider gateway."""

import time

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from ticketing_auth.core import identity_providers
from ticketing_auth.core.config import Settings
from ticketing_auth.core.errors import ProviderError, UnsupportedProvider
from ticketing_auth.core.identity_providers import IdentityProviderGateway

APPLE_AUDIENCE = "lk.spotseeker.app"


@pytest.fixture
def provider_settings() -> Settings:
    return Settings(
        GOOGLE_CLIENT_IDS="web-client.apps.googleusercontent.com, ios-client",
        APPLE_CLIENT_IDS=APPLE_AUDIENCE,
        PROVIDER_TIMEOUT_SECONDS=2.0,
    )


def gateway_for(settings, handler) -> IdentityProviderGateway:
    return IdentityProviderGateway(settings, transport=httpx.MockTransport(handler))


def test_unknown_provider_is_unsupported(provider_settings):
    gateway = IdentityProviderGateway(provider_settings)

    with pytest.raises(UnsupportedProvider):
        gateway.resolve_identity("twitter", "token")


# =============================================================================
# Facebook
# =============================================================================


class TestFacebook:
    def test_profile_is_mapped(self, provider_settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["token"] = request.url.params["access_token"]
            return httpx.Response(
                200,
                json={
                    "id": "fb-42",
                    "name": "Kamal Silva",
                    "email": "Kamal@Example.com",
                    "picture": {"data": {"url": "https://img.example.com/k.png"}},
                },
            )

        identity = gateway_for(provider_settings, handler).resolve_identity("facebook", "fb-token")

        assert seen == {"path": "/v19.0/me", "token": "fb-token"}
        assert identity.provider == "facebook"
        assert identity.external_id == "fb-42"
        assert identity.email == "kamal@example.com"
        assert identity.name == "Kamal Silva"
        assert identity.avatar == "https://img.example.com/k.png"

    def test_missing_email_is_provider_error(self, provider_settings):
        def handler(request):
            return httpx.Response(200, json={"id": "fb-42", "name": "No Mail"})

        with pytest.raises(ProviderError):
            gateway_for(provider_settings, handler).resolve_identity("facebook", "t")

    def test_rejected_token_is_provider_error(self, provider_settings):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "Invalid OAuth access token."}})

        with pytest.raises(ProviderError):
            gateway_for(provider_settings, handler).resolve_identity("facebook", "t")

    def test_timeout_is_provider_error(self, provider_settings):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderError):
            gateway_for(provider_settings, handler).resolve_identity("facebook", "t")


# =============================================================================
# Google
# =============================================================================


class TestGoogle:
    def test_verified_claims_are_mapped(self, provider_settings, monkeypatch):
        calls = {}

        def fake_verify(token, request, audience, clock_skew_in_seconds=0):
            calls["audience"] = audience
            return {
                "sub": "g-7",
                "email": "ruwan@example.com",
                "name": "Ruwan Fernando",
                "picture": "https://img.example.com/r.png",
            }

        monkeypatch.setattr(identity_providers.id_token, "verify_oauth2_token", fake_verify)

        identity = IdentityProviderGateway(provider_settings).resolve_identity("google", "id-token")

        assert calls["audience"] == ["web-client.apps.googleusercontent.com", "ios-client"]
        assert identity.external_id == "g-7"
        assert identity.name == "Ruwan Fernando"
        assert identity.avatar == "https://img.example.com/r.png"

    def test_invalid_token_is_provider_error(self, provider_settings, monkeypatch):
        def fake_verify(*args, **kwargs):
            raise ValueError("Token expired")

        monkeypatch.setattr(identity_providers.id_token, "verify_oauth2_token", fake_verify)

        with pytest.raises(ProviderError):
            IdentityProviderGateway(provider_settings).resolve_identity("google", "id-token")

    def test_unconfigured_client_ids_is_provider_error(self):
        gateway = IdentityProviderGateway(Settings(GOOGLE_CLIENT_IDS=""))

        with pytest.raises(ProviderError):
            gateway.resolve_identity("google", "id-token")


# =============================================================================
# Apple
# =============================================================================


@pytest.fixture(scope="module")
def apple_keypair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    public_jwk = jwk.construct(public_pem, "RS256").to_dict()
    public_jwk["kid"] = "apple-key-1"
    return private_pem, public_jwk


def apple_token(private_pem, kid="apple-key-1", **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": "https://appleid.apple.com",
        "aud": APPLE_AUDIENCE,
        "sub": "001234.abcd",
        "email": "relay@privaterelay.appleid.com",
        "iat": now,
        "exp": now + 600,
    }
    claims.update(overrides)
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})


class TestApple:
    def keys_handler(self, public_jwk):
        def handler(request):
            return httpx.Response(200, json={"keys": [public_jwk]})

        return handler

    def test_signed_token_is_mapped(self, provider_settings, apple_keypair):
        private_pem, public_jwk = apple_keypair
        gateway = gateway_for(provider_settings, self.keys_handler(public_jwk))

        identity = gateway.resolve_identity("apple", apple_token(private_pem))

        assert identity.provider == "apple"
        assert identity.external_id == "001234.abcd"
        assert identity.email == "relay@privaterelay.appleid.com"
        assert identity.name == ""

    def test_foreign_audience_is_provider_error(self, provider_settings, apple_keypair):
        private_pem, public_jwk = apple_keypair
        gateway = gateway_for(provider_settings, self.keys_handler(public_jwk))

        with pytest.raises(ProviderError):
            gateway.resolve_identity("apple", apple_token(private_pem, aud="com.other.app"))

    def test_expired_token_is_provider_error(self, provider_settings, apple_keypair):
        private_pem, public_jwk = apple_keypair
        gateway = gateway_for(provider_settings, self.keys_handler(public_jwk))
        past = int(time.time()) - 3600

        with pytest.raises(ProviderError):
            gateway.resolve_identity(
                "apple", apple_token(private_pem, iat=past - 600, exp=past)
            )

    def test_unknown_signing_key_is_provider_error(self, provider_settings, apple_keypair):
        private_pem, public_jwk = apple_keypair
        gateway = gateway_for(provider_settings, self.keys_handler(public_jwk))

        with pytest.raises(ProviderError):
            gateway.resolve_identity("apple", apple_token(private_pem, kid="rotated-key"))
