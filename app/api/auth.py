"""
app/api/auth.py

Bearer-token authentication dependency.

The identity provider issues HS256 JWTs; the ``sub`` claim is the opaque
principal id handed to the tenant resolver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt
from fastapi import Depends, Header, HTTPException, status

from app.config import AuthSettings, get_auth_settings

logger = logging.getLogger(__name__)

UNAUTHORIZED_DETAIL = "Unauthorized"


@dataclass(frozen=True)
class AuthContext:
    principal_id: str
    claims: dict


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=UNAUTHORIZED_DETAIL,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, settings: AuthSettings) -> dict | None:
    """
    Verify and decode a bearer token. Returns None when it is not acceptable.
    """

    if not settings.jwt_secret:
        logger.warning("AUTH_JWT_SECRET is not configured; rejecting bearer token.")
        return None

    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=list(settings.jwt_algorithms),
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Bearer token has expired.")
        return None
    except jwt.InvalidTokenError as exc:
        logger.info("Invalid bearer token: %s", type(exc).__name__)
        return None


def get_auth_context(
    authorization: str | None = Header(default=None),
    settings: AuthSettings = Depends(get_auth_settings),
) -> AuthContext:
    """
    Resolve the authenticated principal or fail with 401.
    """

    if not authorization:
        raise _unauthorized()

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized()

    claims = decode_token(token.strip(), settings)
    if claims is None:
        raise _unauthorized()

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        logger.info("Bearer token has no usable 'sub' claim.")
        raise _unauthorized()

    return AuthContext(principal_id=subject.strip(), claims=claims)
