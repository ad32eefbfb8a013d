# marefa/core/errors.py
"""
Domain error types.

Services raise these; the handlers registered in ``marefa.main`` turn them
into ``{"detail": {"code": ..., "message": ...}}`` responses.
"""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "EMAIL_EXISTS"
    message = "Email already in use"


class DuplicateUsername(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "USERNAME_EXISTS"
    message = "Username already in use"


class InvalidPlan(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_PLAN"
    message = "Invalid subscription plan"


class InvalidSignature(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_SIGNATURE"
    message = "Invalid webhook signature"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_INVALID_CREDENTIALS"
    message = "Incorrect email or password"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_REQUIRED"
    message = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Not allowed to access this chat"


class TierInsufficient(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "TIER_INSUFFICIENT"
    message = "Research mode requires a Research subscription"


class QuotaExceeded(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "QUOTA_EXCEEDED"
    message = "Free tier message limit reached. Please upgrade your plan."


class GuestLimitReached(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "GUEST_LIMIT_REACHED"
    message = "Guest message limit reached. Please sign up to continue."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Not found"


class GenerationFailed(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "GENERATION_FAILED"
    message = "Error generating a reply. Please try again."


class BillingError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "BILLING_ERROR"
    message = "Billing provider request failed"
