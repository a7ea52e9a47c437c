"""Bearer-token authentication against an OpenID Connect provider."""

from .dependencies import get_verifier, require_bearer_token, require_json_content_type
from .oidc import DiscoveryError, OIDCVerifier, TokenVerificationError

__all__ = [
    "DiscoveryError",
    "OIDCVerifier",
    "TokenVerificationError",
    "get_verifier",
    "require_bearer_token",
    "require_json_content_type",
]
