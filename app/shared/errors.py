# app/shared/errors.py
"""
Error taxonomy shared by the services.

Services raise these at the point of detection; ``app.main`` maps them to the
JSON error envelope from ``app.shared.http``. Internal faults carry a generic
public message and keep the real reason for the logs.
"""
from typing import Any, Optional


class AppError(Exception):
    code = "internal_error"
    status = 500
    internal = True
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.details = details

    @property
    def client_message(self) -> str:
        return self.public_message if self.internal else self.message


class ValidationError(AppError):
    code = "invalid_input"
    status = 400
    internal = False
    public_message = "Invalid input"


class NotFoundError(AppError):
    """Entity absent or owned by someone else; the two are never told apart."""
    code = "not_found"
    status = 404
    internal = False
    public_message = "Not found"


class ConflictError(AppError):
    code = "conflict"
    status = 409
    internal = False
    public_message = "Already exists"


class AuthenticationError(AppError):
    code = "invalid_credentials"
    status = 401
    internal = False
    public_message = "Invalid email or password"

    def __init__(self, reason: Optional[str] = None):
        # the reason is for logs only; clients always see the same message
        super().__init__(self.public_message)
        self.reason = reason


class TokenInvalidError(AppError):
    code = "token_invalid"
    status = 401
    internal = False
    public_message = "Invalid or expired token"


class TokenRevokedError(AppError):
    code = "token_revoked"
    status = 401
    internal = False
    public_message = "Refresh token has been revoked or rotated"


class SummarizationError(AppError):
    code = "summarization_failed"
    status = 502
    internal = False
    public_message = "Summarization failed, try again later"


class TokenGenerationError(AppError):
    code = "token_generation_failed"
    status = 500
    internal = True
    public_message = "Error while generating access and refresh tokens"
