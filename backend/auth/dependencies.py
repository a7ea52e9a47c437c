"""FastAPI dependencies guarding protected routes.

Routes list them in ``dependencies=[...]``; FastAPI resolves them in order,
so the content-type check runs before the bearer-token check on mutating
routes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request

from core.errors import UnauthorizedError, UnsupportedMediaTypeError
from .oidc import OIDCVerifier, TokenVerificationError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def get_verifier(request: Request) -> OIDCVerifier:
    """Return the verifier the application was started with."""
    verifier = getattr(request.app.state, "verifier", None)
    if verifier is None:
        raise RuntimeError("OIDC verifier is not initialized.")
    return verifier


async def require_bearer_token(request: Request) -> Dict[str, Any]:
    """Verify the ``Authorization: Bearer`` token and expose its claims.

    The claims are stored on ``request.state.claims`` for downstream handlers.
    """
    header = request.headers.get("Authorization")
    if not header:
        logger.warning("Missing Authorization header on %s %s", request.method, request.url.path)
        raise UnauthorizedError()

    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        logger.warning("Malformed Authorization header on %s %s", request.method, request.url.path)
        raise UnauthorizedError()

    try:
        claims = await get_verifier(request).verify(token)
    except TokenVerificationError as exc:
        logger.warning("Rejected bearer token on %s %s: %s", request.method, request.url.path, exc)
        raise UnauthorizedError(cause=exc) from exc

    logger.debug("Authenticated subject %s", claims.get("sub"))
    request.state.claims = claims
    return claims


async def require_json_content_type(request: Request) -> None:
    """Reject bodies that are not declared as ``application/json``."""
    content_type = request.headers.get("Content-Type")
    media_type = content_type.split(";", 1)[0].strip().lower() if content_type else ""
    if media_type != JSON_MEDIA_TYPE:
        logger.debug("Rejected Content-Type %r on %s %s", content_type, request.method, request.url.path)
        raise UnsupportedMediaTypeError(content_type)
