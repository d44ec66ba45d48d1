# chainpad/auth/tokens.py
"""
Signed session tokens (HS256 JWT) keyed to a wallet address.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from chainpad.errors import AuthenticationError
from chainpad.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_token(user_id: int, wallet_address: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "wallet_address": wallet_address,
        "iat": now,
        "exp": now + timedelta(hours=settings.token_ttl_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Optional[Settings] = None) -> dict:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationError: if the token is expired, tampered with or malformed
    """
    settings = settings or get_settings()
    if not token:
        raise AuthenticationError("Authentication required")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Invalid or expired token")
    except jwt.InvalidTokenError as e:
        logger.info("[auth] Rejected token: %s", e)
        raise AuthenticationError("Invalid or expired token")

    if not isinstance(claims.get("id"), int) or not claims.get("wallet_address"):
        raise AuthenticationError("Invalid or expired token")
    return claims
