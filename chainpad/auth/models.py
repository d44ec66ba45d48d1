# chainpad/auth/models.py
"""
SQLAlchemy model for wallet-identified users.

One row per distinct wallet address, created lazily on first login.
There is no deletion path.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime

from chainpad.db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String(64), unique=True, nullable=False, index=True)  # lowercase
    email = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
