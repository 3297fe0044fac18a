"""
Token Validation and Application Secrets

Access tokens are issued elsewhere; this service only verifies them.
Application private keys are generated here, once per application, and are
used to sign the events delivered to the application's hooks URL.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from typing import Any

import jwt

from src.config import get_settings

logger = logging.getLogger(__name__)

APPLICATION_SECRET_BYTES = 32


def decode_token(token: str, expected_type: str | None = None) -> dict[str, Any] | None:
    """
    Verify a token's signature, issuer, audience and expiry.

    Args:
        token: Encoded JWT
        expected_type: Required value of the ``type`` claim, if any

    Returns:
        The claims, or None for any token that should not be trusted
    """
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected access token: {e}")
        return None

    if expected_type is not None and claims.get("type") != expected_type:
        return None
    return claims


def generate_application_secret() -> str:
    """Base64 encoding of 32 random bytes."""
    return base64.b64encode(secrets.token_bytes(APPLICATION_SECRET_BYTES)).decode("ascii")


def sign_payload(body: bytes, secret: str) -> str:
    """
    HMAC-SHA256 hex digest of an outbound event body.

    The application recomputes it over the raw body with its private key and
    compares it to the signature header.
    """
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
