# FILE: chainpad/errors.py
"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; main.py renders them as {message} or
{message, details} with the carried status code.
"""

from typing import Any, Optional


class ChainPadError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthenticationError(ChainPadError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class AuthorizationError(ChainPadError):
    """Caller is known but does not own the target resource."""

    status_code = 403


class NotFoundError(ChainPadError):
    status_code = 404


class ValidationFailed(ChainPadError):
    status_code = 400


class ExternalServiceError(ChainPadError):
    """Language-model or chain RPC failure."""

    status_code = 502
