# chainpad/auth/wallet.py
"""
Wallet address handling and the per-request caller context.

The caller is resolved once per request (see middleware.require_wallet) and
passed explicitly into the services. Nothing here holds module-level state
about the "current" wallet.
"""

import re
from dataclasses import dataclass
from typing import Optional

from chainpad.errors import ValidationFailed

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_wallet_address(value: Optional[str]) -> bool:
    return bool(value) and bool(_ADDRESS_RE.match(value.strip()))


def normalize_wallet_address(value: Optional[str]) -> str:
    """Validate and lowercase a wallet address.

    Raises:
        ValidationFailed: if the value is not 0x followed by 40 hex characters
    """
    if not value or not value.strip():
        raise ValidationFailed("Wallet address is required")
    value = value.strip()
    if not _ADDRESS_RE.match(value):
        raise ValidationFailed(f"Invalid wallet address: {value}")
    return value.lower()


@dataclass(frozen=True)
class CallerContext:
    """Who is making the request.

    wallet_address is None for anonymous callers (folder listing only).
    user_id is set when the caller presented a valid session token.
    """
    wallet_address: Optional[str] = None
    user_id: Optional[int] = None

    @property
    def is_anonymous(self) -> bool:
        return self.wallet_address is None

    def owns(self, owner_address: Optional[str]) -> bool:
        return (
            self.wallet_address is not None
            and owner_address is not None
            and owner_address.lower() == self.wallet_address
        )
