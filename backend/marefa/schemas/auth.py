"""
Pydantic schemas for authentication endpoints.
Defines request models for register, login and password change.
"""
from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class StrictModel(BaseModel):
    """Request body base: unknown fields are rejected."""

    class Config:
        extra = "forbid"


class RegisterIn(StrictModel):
    """
    Request model for account registration.
    """
    email: str = Field(pattern=EMAIL_PATTERN, max_length=256)  # Must be unique
    username: str = Field(min_length=3, max_length=256)  # Must be unique
    password: str = Field(min_length=6, max_length=256)  # Hashed server-side


class LoginIn(StrictModel):
    """
    Request model for login. Users sign in with their email.
    """
    email: str
    password: str


class ChangePasswordIn(StrictModel):
    currentPassword: str
    newPassword: str = Field(min_length=6, max_length=256)
