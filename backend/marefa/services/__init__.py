"""
Services Module

Domain logic behind the routers:
- Chat orchestration (sessions, messages, category switching)
- Quota and tier policy
- Chat model (OpenAI Chat Completions)
- Billing (Stripe subscriptions and webhooks)
- Research documents (uploads)
"""

# Chat model service
from .llm_base import (
    ChatCompletion,
    ChatModelService,
    ChatTurn,
)
from .llm_factory import get_chat_model_service
from .llm_openai import openai_chat_service

# Policy
from .quota import (
    PolicyDecision,
    can_access_category,
    evaluate_send,
    remaining_messages,
)

# Billing
from .billing import (
    StripeClient,
    get_stripe_client,
    stripe_client,
)

__all__ = [
    # Chat model - service interface
    "ChatCompletion",
    "ChatModelService",
    "ChatTurn",
    "get_chat_model_service",
    "openai_chat_service",
    # Policy
    "PolicyDecision",
    "can_access_category",
    "evaluate_send",
    "remaining_messages",
    # Billing
    "StripeClient",
    "get_stripe_client",
    "stripe_client",
]
