"""Admin credential issuing and verification."""

import hmac
import logging
from datetime import timedelta
from typing import Any

import jwt
from fastapi import Depends, Header

from catalog.documents import utcnow
from config.settings import Settings, get_settings
from core.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEV_PRINCIPAL = {"id": "dev-admin", "role": "admin"}

# Only used when ENVIRONMENT=development and no JWT_SECRET is configured
DEV_SIGNING_SECRET = "excess-music-development-secret"


def signing_secret(settings: Settings) -> str | None:
    """The secret used to sign tokens, or None when admin auth is not configured."""
    if settings.jwt_secret:
        return settings.jwt_secret
    if settings.is_development:
        return DEV_SIGNING_SECRET
    return None


def check_credentials(settings: Settings, username: str, password: str) -> bool:
    """Compare against the configured static admin credentials in constant time."""
    user_ok = hmac.compare_digest(username.encode(), settings.admin_username.encode())
    pass_ok = hmac.compare_digest(password.encode(), settings.admin_password.encode())
    return user_ok and pass_ok


def create_admin_token(settings: Settings) -> str:
    secret = signing_secret(settings)
    if secret is None:
        raise AuthorizationError("Admin authentication not configured")

    now = utcnow()
    payload = {
        "id": "admin",
        "role": "admin",
        "email": settings.admin_email,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_admin_token(settings: Settings, token: str) -> dict[str, Any]:
    """Verify a bearer token and return its claims.

    Raises:
        AuthorizationError: admin auth is not configured
        AuthenticationError: the token is malformed, expired or wrongly signed
    """
    secret = signing_secret(settings)
    if secret is None:
        raise AuthorizationError("Admin authentication not configured")
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid admin token.") from e


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


async def require_admin(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(None),
) -> dict[str, Any]:
    """Dependency guarding admin endpoints.

    In development with no JWT secret configured, requests without a token
    are let through as a ``dev-admin`` principal.
    """
    token = _bearer_token(authorization)

    if token is None:
        if settings.is_development and not settings.jwt_secret:
            logger.warning("Admin access granted (development mode - no JWT_SECRET set)")
            return dict(DEV_PRINCIPAL)
        if signing_secret(settings) is None:
            raise AuthorizationError("Admin authentication not configured")
        raise AuthenticationError("Access denied. Admin token required.")

    claims = decode_admin_token(settings, token)
    if claims.get("role") != "admin":
        raise AuthorizationError("Access denied. Admin privileges required.")
    return claims
