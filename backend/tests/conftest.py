# Ensure backend is at sys.path[0] when pytest runs (from repo root or from backend dir)
import sys
import time
from pathlib import Path

_tests_dir = Path(__file__).resolve().parent
_backend = _tests_dir.parent
_str_backend = str(_backend)
if sys.path[0:1] != [_str_backend]:
    sys.path.insert(0, _str_backend)

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from jose import jwk, jwt

from auth import OIDCVerifier
from core.config import Settings
from core.database import DatabaseManager
from main import create_app

ISSUER = "https://id.example.test/realms/demo"
CLIENT_ID = "demo-client"
JWKS_URI = ISSUER + "/protocol/openid-connect/certs"
KEY_ID = "test-key"


def generate_private_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")


def public_jwk(private_pem: str, kid: str) -> dict:
    public = jwk.construct(private_pem, "RS256").public_key().to_dict()
    public.update({"kid": kid, "use": "sig"})
    return public


def sign_token(private_pem: str, kid: str = KEY_ID, **claims) -> str:
    """Sign an RS256 token with sane defaults; pass ``claim=None`` to drop a claim."""
    now = int(time.time())
    body = {"iss": ISSUER, "aud": CLIENT_ID, "sub": "user-1", "iat": now, "exp": now + 300}
    body.update(claims)
    body = {name: value for name, value in body.items() if value is not None}
    return jwt.encode(body, private_pem, algorithm="RS256", headers={"kid": kid})


@pytest.fixture(scope="session")
def private_pem() -> str:
    return generate_private_pem()


@pytest.fixture(scope="session")
def signing_jwk(private_pem) -> dict:
    return public_jwk(private_pem, KEY_ID)


@pytest.fixture
def make_token(private_pem):
    def _make(**claims) -> str:
        return sign_token(private_pem, **claims)

    return _make


@pytest.fixture
def auth_headers(make_token) -> dict:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def json_auth_headers(auth_headers) -> dict:
    return {**auth_headers, "Content-Type": "application/json"}


@pytest_asyncio.fixture
async def verifier(signing_jwk):
    """Verifier preloaded with the test key; the JWKS endpoint is never reachable."""
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    async with httpx.AsyncClient(transport=transport) as client:
        yield OIDCVerifier(
            issuer=ISSUER,
            client_id=CLIENT_ID,
            jwks_uri=JWKS_URI,
            http_client=client,
            keys=[signing_jwk],
        )


@pytest_asyncio.fixture
async def database(tmp_path):
    """File-backed SQLite with every table, fresh per test."""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'pac-test.db'}")
    await manager.init()
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        oidc_issuer_url=ISSUER,
        oidc_client_id=CLIENT_ID,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'pac-app.db'}",
    )


@pytest_asyncio.fixture
async def client(settings, database, verifier):
    app = create_app(settings, database=database, verifier=verifier)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as http:
        yield http
