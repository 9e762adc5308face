# errors.py
"""
Domain errors raised by services and route handlers.

Each carries the HTTP status and the public message returned to the client
as ``{"error": message}``. Internal exception text never goes in ``message``.
"""
from __future__ import annotations

__all__ = [
    "PortalError", "MissingField", "ValidationError", "NotRegistered",
    "InactiveAccount", "MissingEmail", "InvalidCode", "ExpiredCode",
    "TooManyAttempts", "Unauthorized", "AdminRequired", "Forbidden", "NotFound", "Conflict",
    "InternalError",
]


class PortalError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, *, extra: dict | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.extra = extra or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.extra)
        return body


class MissingField(PortalError):
    status_code = 400
    message = "Missing required fields"


class ValidationError(PortalError):
    status_code = 400
    message = "Invalid input"


class NotRegistered(PortalError):
    status_code = 404
    message = "Phone number not registered. Please sign up first."


class InactiveAccount(PortalError):
    status_code = 403
    message = "Account is inactive. Please contact support."


class MissingEmail(PortalError):
    status_code = 500
    message = "No email is associated with this account. Please contact support."


class InvalidCode(PortalError):
    status_code = 400
    message = "Invalid verification code"


class ExpiredCode(PortalError):
    status_code = 400
    message = "Verification code expired"


class TooManyAttempts(PortalError):
    status_code = 429
    message = "Too many attempts. Please request a new code."


class Unauthorized(PortalError):
    status_code = 401
    message = "Unauthorized"


class AdminRequired(PortalError):
    status_code = 403
    message = "Admin access required"


class Forbidden(PortalError):
    status_code = 403
    message = "Forbidden"


class NotFound(PortalError):
    status_code = 404
    message = "Not found"


class Conflict(PortalError):
    status_code = 400
    message = "Already exists"


class InternalError(PortalError):
    status_code = 500
    message = "Internal server error"
