# chainpad/auth/__init__.py
"""
Authentication module for ChainPad.
Wallet-address login with signed, time-limited session tokens.
"""

from .middleware import require_auth, require_wallet, optional_wallet, AuthResult
from .wallet import CallerContext, normalize_wallet_address, is_wallet_address
from .service import login, validate_session, get_or_create_user

__all__ = [
    # Middleware
    "require_auth",
    "require_wallet",
    "optional_wallet",
    "AuthResult",
    # Wallet
    "CallerContext",
    "normalize_wallet_address",
    "is_wallet_address",
    # Service
    "login",
    "validate_session",
    "get_or_create_user",
]
