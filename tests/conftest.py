import json
import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from wp_idp_auth import StaticSigningKeyResolver, WpIdpOptions

AUTHORITY = "https://login.example.com/tenant-1/v2.0"
CLIENT_ID = "client-123"
KID = "test-key"
NOW = 1_700_000_000

_PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
_OTHER_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_token(claims: dict | None = None, *, key=None, kid: str | None = KID, algorithm: str = "RS256", **overrides) -> str:
    payload = {
        "iss": AUTHORITY,
        "aud": CLIENT_ID,
        "sub": "user-1",
        "tid": "tenant-1",
        "email": "user@example.com",
        "iat": NOW,
        "nbf": NOW,
        "exp": NOW + 3600,
    }
    payload.update(claims or {})
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}

    headers = {"kid": kid} if kid else None
    body = json.dumps(payload, separators=(",", ":")).encode()
    return jwt.api_jws.PyJWS().encode(body, key or _PRIVATE_KEY, algorithm=algorithm, headers=headers)


@pytest.fixture
def private_key():
    return _PRIVATE_KEY


@pytest.fixture
def other_private_key():
    return _OTHER_KEY


@pytest.fixture
def key_resolver():
    return StaticSigningKeyResolver({KID: _PRIVATE_KEY.public_key()})


@pytest.fixture
def options():
    return WpIdpOptions(
        authority=AUTHORITY,
        client_id=CLIENT_ID,
        redirect_uri="https://app.example.com/signin-oidc",
    )


@pytest.fixture
def fixed_clock():
    return lambda: float(NOW)


@pytest.fixture
def live_token():
    """Token valid against the real clock (for HTTP adapter tests)."""
    now = int(time.time())
    return make_token(iat=now, nbf=now, exp=now + 3600)


@pytest.fixture
def token_factory():
    return make_token
