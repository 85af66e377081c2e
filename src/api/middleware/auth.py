"""Verification of Supabase access tokens.

Projects on the new asymmetric signing keys configure the public JWK
(ES256); older projects use the shared HS256 JWT secret.
"""

import json
from enum import Enum
from typing import Any

import jwt
from jwt import PyJWK

from src.core.config import get_settings
from src.schemas.auth import TokenPayload

REQUIRED_CLAIMS = ["exp", "iat", "sub"]


class AuthErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class AuthError(Exception):
    """A token was rejected; ``code`` says why."""

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


def get_verification_key() -> tuple[Any, str]:
    """Return ``(key, algorithm)``, preferring the signing key JWK."""
    settings = get_settings()

    if settings.supabase_signing_key_jwk:
        try:
            jwk = json.loads(settings.supabase_signing_key_jwk)
        except json.JSONDecodeError as e:
            raise AuthError(f"Signing key JWK is not valid JSON: {e}", AuthErrorCode.INVALID_TOKEN) from e
        return PyJWK.from_dict(jwk).key, "ES256"

    if not settings.supabase_jwt_secret:
        raise AuthError("Signing key not configured", AuthErrorCode.INVALID_TOKEN)
    return settings.supabase_jwt_secret, "HS256"


def decode_jwt(token: str) -> TokenPayload:
    """Verify signature, expiry and required claims of an access token.

    The audience is not checked; Supabase issues "authenticated" for
    every signed-in user.

    Raises:
        AuthError: The token is expired, forged or malformed.
    """
    key, algorithm = get_verification_key()
    options = {"verify_aud": False, "require": REQUIRED_CLAIMS}

    try:
        claims: dict[str, Any] = jwt.decode(token, key, algorithms=[algorithm], options=options)
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token has expired", AuthErrorCode.TOKEN_EXPIRED) from e
    except jwt.InvalidSignatureError as e:
        raise AuthError("Invalid token signature", AuthErrorCode.INVALID_SIGNATURE) from e
    except jwt.PyJWTError as e:
        raise AuthError(f"Invalid token: {e}", AuthErrorCode.INVALID_TOKEN) from e

    try:
        return TokenPayload.model_validate(claims)
    except ValueError as e:
        raise AuthError(f"Invalid token claims: {e}", AuthErrorCode.INVALID_TOKEN) from e
