# chainpad/auth/middleware.py
"""
FastAPI authentication dependencies.

require_auth   - bearer token required (identity endpoints)
require_wallet - resolves the CallerContext for contract-scoped routes
optional_wallet - same, but anonymous callers are allowed
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from chainpad.auth import service
from chainpad.auth.wallet import CallerContext, normalize_wallet_address
from chainpad.db import get_db
from chainpad.errors import AuthenticationError, AuthorizationError
from chainpad.settings import get_settings

security = HTTPBearer(auto_error=False)


@dataclass
class AuthResult:
    """Result of authentication check."""
    authenticated: bool
    user_id: Optional[int] = None
    wallet_address: Optional[str] = None


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthResult:
    """
    Dependency that requires a valid session token.

    Raises:
        AuthenticationError (401): missing, invalid or expired token, or unknown user
    """
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    user = service.validate_session(db, credentials.credentials)
    return AuthResult(authenticated=True, user_id=user.id, wallet_address=user.wallet_address)


def _resolve_caller(
    credentials: Optional[HTTPAuthorizationCredentials],
    header_wallet: Optional[str],
    db: Session,
) -> CallerContext:
    header_address = normalize_wallet_address(header_wallet) if header_wallet else None

    if credentials and credentials.credentials:
        user = service.validate_session(db, credentials.credentials)
        if header_address and header_address != user.wallet_address:
            raise AuthorizationError("Wallet address does not match session")
        return CallerContext(wallet_address=user.wallet_address, user_id=user.id)

    if header_address:
        if not get_settings().allow_header_wallet:
            raise AuthenticationError("Authentication required")
        return CallerContext(wallet_address=header_address)

    return CallerContext()


def require_wallet(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_wallet_address: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> CallerContext:
    """
    Resolve the calling wallet from the session token or x-wallet-address.

    A token always wins; a header that disagrees with it is rejected.
    The bare header is trusted only while CHAINPAD_ALLOW_HEADER_WALLET is on.
    """
    caller = _resolve_caller(credentials, x_wallet_address, db)
    if caller.is_anonymous:
        raise AuthenticationError("Wallet address required")
    return caller


def optional_wallet(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_wallet_address: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> CallerContext:
    """Like require_wallet, but returns an anonymous context when nothing is supplied."""
    return _resolve_caller(credentials, x_wallet_address, db)
