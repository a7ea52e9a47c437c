"""OpenID Connect token verification.

The verifier is built once at startup from the provider's discovery
document and then shared by every request. Keys are looked up by the
token's ``kid``; an unknown ``kid`` causes one JWKS re-fetch so that
provider key rotation does not require a restart.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger(__name__)

DISCOVERY_PATH = "/.well-known/openid-configuration"
DEFAULT_ALGORITHMS = ("RS256",)
DECODE_OPTIONS = {
    "require_exp": True,
    "require_iss": True,
    "require_aud": True,
    # ID tokens may carry at_hash; there is no access token here to compare it with.
    "verify_at_hash": False,
}


class DiscoveryError(Exception):
    """Raised when the provider metadata or its signing keys cannot be loaded."""


class TokenVerificationError(Exception):
    """Raised when a bearer token fails any verification step."""


async def _fetch_json(client: httpx.AsyncClient, url: str) -> Dict[str, Any]:
    try:
        response = await client.get(url)
        response.raise_for_status()
        document = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise DiscoveryError(f"failed to fetch {url}: {exc}") from exc
    if not isinstance(document, dict):
        raise DiscoveryError(f"{url} did not return a JSON object")
    return document


class OIDCVerifier:
    """Verifies bearer tokens issued by one OpenID Connect provider."""

    def __init__(
        self,
        issuer: str,
        client_id: str,
        jwks_uri: str,
        http_client: httpx.AsyncClient,
        algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
        keys: Optional[List[Dict[str, Any]]] = None,
        min_refresh_interval: float = 10.0,
    ) -> None:
        self.issuer = issuer
        self.client_id = client_id
        self.jwks_uri = jwks_uri
        self.algorithms = list(algorithms)
        self.min_refresh_interval = min_refresh_interval
        self._client = http_client
        self._keys: List[Dict[str, Any]] = list(keys or [])
        self._keys_fetched_at: Optional[float] = time.monotonic() if keys is not None else None

    @classmethod
    async def discover(
        cls,
        issuer: str,
        client_id: str,
        http_client: httpx.AsyncClient,
        **kwargs: Any,
    ) -> "OIDCVerifier":
        """Build a verifier from ``{issuer}/.well-known/openid-configuration``.

        Raises:
            DiscoveryError: if the document or the JWKS cannot be fetched, the
                document names a different issuer, or it has no ``jwks_uri``.
        """
        issuer = issuer.rstrip("/")
        document = await _fetch_json(http_client, issuer + DISCOVERY_PATH)

        advertised = document.get("issuer")
        if advertised != issuer:
            raise DiscoveryError(
                f"issuer did not match the issuer returned by provider, expected {issuer!r} got {advertised!r}"
            )
        jwks_uri = document.get("jwks_uri")
        if not jwks_uri:
            raise DiscoveryError("discovery document has no jwks_uri")
        algorithms = document.get("id_token_signing_alg_values_supported") or list(DEFAULT_ALGORITHMS)

        verifier = cls(
            issuer=issuer,
            client_id=client_id,
            jwks_uri=jwks_uri,
            http_client=http_client,
            algorithms=algorithms,
            **kwargs,
        )
        await verifier.refresh_keys()
        logger.info(
            "OIDC provider discovered: issuer=%s jwks_uri=%s algorithms=%s",
            issuer,
            jwks_uri,
            verifier.algorithms,
        )
        return verifier

    async def refresh_keys(self) -> None:
        """Re-fetch the provider's JWKS."""
        document = await _fetch_json(self._client, self.jwks_uri)
        keys = document.get("keys")
        if not isinstance(keys, list):
            raise DiscoveryError(f"{self.jwks_uri} has no 'keys' list")
        self._keys = [key for key in keys if isinstance(key, dict) and key.get("use", "sig") == "sig"]
        self._keys_fetched_at = time.monotonic()
        logger.debug("Fetched %d signing keys from %s", len(self._keys), self.jwks_uri)

    def _find_key(self, kid: Optional[str]) -> Optional[Dict[str, Any]]:
        if kid is None:
            return self._keys[0] if len(self._keys) == 1 else None
        for key in self._keys:
            if key.get("kid") == kid:
                return key
        return None

    def _may_refresh(self) -> bool:
        if self._keys_fetched_at is None:
            return True
        return time.monotonic() - self._keys_fetched_at >= self.min_refresh_interval

    async def _signing_key(self, kid: Optional[str]) -> Dict[str, Any]:
        key = self._find_key(kid)
        if key is None and self._may_refresh():
            try:
                await self.refresh_keys()
            except DiscoveryError as exc:
                logger.warning("JWKS refresh failed: %s", exc)
            key = self._find_key(kid)
        if key is None:
            raise TokenVerificationError(f"no signing key matches kid {kid!r}")
        return key

    async def verify(self, token: str) -> Dict[str, Any]:
        """Verify signature, issuer, audience and expiry; return the claims.

        Raises:
            TokenVerificationError: on any failure. The message names the cause
                and is meant for server logs only.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise TokenVerificationError(f"malformed token: {exc}") from exc

        algorithm = header.get("alg")
        if algorithm not in self.algorithms:
            raise TokenVerificationError(f"unsupported signing algorithm {algorithm!r}")

        key = await self._signing_key(header.get("kid"))
        try:
            return jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.client_id,
                issuer=self.issuer,
                options=DECODE_OPTIONS,
            )
        except ExpiredSignatureError as exc:
            raise TokenVerificationError("token is expired") from exc
        except JWTClaimsError as exc:
            raise TokenVerificationError(f"invalid claims: {exc}") from exc
        except JWTError as exc:
            raise TokenVerificationError(f"invalid token: {exc}") from exc
