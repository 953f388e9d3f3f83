"""
Error taxonomy for the auth API.

Every error an operation can report is an AuthError subclass carrying the
HTTP status it maps to. main.py registers one handler that renders them,
so route handlers never build error responses themselves.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for errors returned to the client as structured responses"""

    status_code: int = 400
    message: str = "Bad request"
    headers: Optional[dict] = None

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AuthError):
    """Malformed input. Lists every violated field, not just the first."""

    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: list[dict]):
        self.errors = errors
        super().__init__()

    def to_dict(self) -> dict:
        return {"errors": self.errors}


class DuplicateEmail(AuthError):
    status_code = 400
    message = "User already exists"


class InvalidCredentials(AuthError):
    # Same text for unknown email and wrong password
    status_code = 400
    message = "Invalid Credentials"


class InvalidCurrentPassword(AuthError):
    status_code = 400
    message = "Incorrect current password"


class NoFileProvided(AuthError):
    status_code = 400
    message = "No file uploaded"


class Unauthorized(AuthError):
    status_code = 401
    message = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class NotFound(AuthError):
    status_code = 404
    message = "User not found"


class UpstreamFailure(AuthError):
    status_code = 502
    message = "Media storage is unavailable"


class TokenError(Exception):
    """Raised by TokenService.verify; the request gate maps it to Unauthorized"""


class InvalidToken(TokenError):
    pass


class ExpiredToken(TokenError):
    pass


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at startup"""
