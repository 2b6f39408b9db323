"""Pytest fixtures for tokenguard-core tests."""

import time

import jwt as pyjwt
import pytest
from jwcrypto import jwk
from jwt.algorithms import RSAAlgorithm

ISSUER = "https://issuer.example"
JWKS_URL = "https://issuer.example/.well-known/jwks.json"
SECRET = "tokenguard-test-secret-" + "0123456789abcdef" * 3


@pytest.fixture
def rsa_keypair():
    """Generate RSA key pair for testing."""
    return jwk.JWK.generate(kty="RSA", size=2048, kid="test-key-id", alg="RS256", use="sig")


@pytest.fixture
def ec_keypair():
    """Generate P-256 key pair for testing."""
    return jwk.JWK.generate(kty="EC", crv="P-256", kid="ec-key-id")


@pytest.fixture
def okp_keypair():
    """Generate Ed25519 key pair for testing."""
    return jwk.JWK.generate(kty="OKP", crv="Ed25519", kid="okp-key-id")


@pytest.fixture
def jwks_data(rsa_keypair):
    """Generate JWKS data for testing."""
    keyset = jwk.JWKSet()
    keyset.add(rsa_keypair)
    return keyset.export(private_keys=False).encode("utf-8")


@pytest.fixture
def public_keys(rsa_keypair):
    """One-key key set as a list of public records."""
    return [rsa_keypair.export_public(as_dict=True)]


@pytest.fixture
def now():
    return int(time.time())


@pytest.fixture
def claims(now):
    """Representative claim set."""
    return {
        "sub": "test-user",
        "aud": [ISSUER, "https://my-app.example"],
        "iss": ISSUER,
        "scp": "user openid",
        "aid": "app-123",
        "iat": now,
        "exp": now + 3600,
    }


@pytest.fixture
def rsa_token(rsa_keypair, claims):
    """Generate a valid RS256 token."""
    signing_key = RSAAlgorithm.from_jwk(rsa_keypair.export_private())
    return pyjwt.encode(
        claims, signing_key, algorithm="RS256", headers={"kid": "test-key-id"}
    )


@pytest.fixture
def hs_token(claims):
    """Generate a valid HS256 token."""
    return pyjwt.encode(claims, SECRET, algorithm="HS256")


@pytest.fixture
def expired_hs_token(now):
    """Generate an expired HS256 token."""
    payload = {"sub": "test-user", "iat": now - 7200, "exp": now - 3600}
    return pyjwt.encode(payload, SECRET, algorithm="HS256")


@pytest.fixture
def mock_jwks_response(jwks_data):
    """Mock JWKS HTTP response."""

    class MockResponse:
        def __init__(self):
            self.content = jwks_data
            self.status_code = 200

        def raise_for_status(self):
            pass

    return MockResponse()


class StaticFetcher:
    """Fetch capability returning a fixed document and recording calls."""

    def __init__(self, document):
        self.document = document
        self.calls = []

    def fetch(self, locator, *, verify_certificates=True):
        self.calls.append((locator, verify_certificates))
        return self.document


class AsyncStaticFetcher(StaticFetcher):
    async def fetch(self, locator, *, verify_certificates=True):
        return super().fetch(locator, verify_certificates=verify_certificates)


@pytest.fixture
def static_fetcher(jwks_data):
    return StaticFetcher(jwks_data)


@pytest.fixture
def async_static_fetcher(jwks_data):
    return AsyncStaticFetcher(jwks_data)
