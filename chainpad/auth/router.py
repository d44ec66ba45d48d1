# chainpad/auth/router.py
"""
Authentication API endpoints for wallet-based login.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from chainpad.db import get_db
from . import service
from .middleware import require_auth, AuthResult

router = APIRouter(prefix="/api", tags=["auth"])


# ============ Request/Response Models ============

class LoginRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1)


class UserOut(BaseModel):
    id: int
    wallet_address: str


class LoginResponse(BaseModel):
    user: UserOut
    token: str


# ============ Endpoints ============

@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Log in with a wallet address.
    Creates the user on first login; returns a 24h session token.
    """
    return service.login(db, request.wallet_address)


@router.get("/user", response_model=UserOut)
def current_user(auth: AuthResult = Depends(require_auth)):
    """Identity behind the presented bearer token."""
    return UserOut(id=auth.user_id, wallet_address=auth.wallet_address)
