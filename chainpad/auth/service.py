# chainpad/auth/service.py
"""
Wallet login and session validation.

login() upserts the user for a wallet address (case-insensitive) and issues
a token. validate_session() turns a token back into the user it names.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from chainpad.auth.models import User
from chainpad.auth.tokens import create_token, decode_token
from chainpad.auth.wallet import normalize_wallet_address
from chainpad.errors import AuthenticationError
from chainpad.settings import Settings

logger = logging.getLogger(__name__)


def placeholder_email(wallet_address: str) -> str:
    return f"{wallet_address}@placeholder.com"


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_wallet(db: Session, wallet_address: str) -> Optional[User]:
    return db.query(User).filter(User.wallet_address == wallet_address.lower()).first()


def get_or_create_user(db: Session, wallet_address: str) -> User:
    address = normalize_wallet_address(wallet_address)
    user = get_user_by_wallet(db, address)
    if user:
        return user

    user = User(wallet_address=address, email=placeholder_email(address))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("[auth] Created user %s for wallet %s", user.id, address)
    return user


def login(db: Session, wallet_address: str, settings: Optional[Settings] = None) -> dict:
    """
    Find or create the user for a wallet and issue a session token.

    Returns:
        {"user": {"id", "wallet_address"}, "token": str}
    """
    user = get_or_create_user(db, wallet_address)
    user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(user)

    token = create_token(user.id, user.wallet_address, settings=settings)
    return {
        "user": {"id": user.id, "wallet_address": user.wallet_address},
        "token": token,
    }


def validate_session(db: Session, token: str, settings: Optional[Settings] = None) -> User:
    """
    Resolve a token to its user.

    Raises:
        AuthenticationError: invalid/expired token, or the user no longer exists
    """
    claims = decode_token(token, settings=settings)
    user = get_user(db, claims["id"])
    if not user:
        raise AuthenticationError("User not found")
    if user.wallet_address != str(claims["wallet_address"]).lower():
        raise AuthenticationError("Invalid or expired token")
    return user
