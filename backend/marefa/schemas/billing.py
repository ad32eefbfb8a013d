"""
Pydantic schemas for subscription endpoints.
"""
from pydantic import BaseModel
from typing import Optional

from .auth import StrictModel


class SubscriptionIn(StrictModel):
    """
    Plan to subscribe to: basic, research or teams.
    Unknown plans are rejected with INVALID_PLAN.
    """
    plan: str = "basic"


class PublicConfigOut(BaseModel):
    """
    Client-safe configuration.
    """
    stripePublishableKey: Optional[str] = None
    freeMessageLimit: int
    guestMessageLimit: int
