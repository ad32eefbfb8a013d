"""
Database model for users.
Represents a user account: credentials, role, subscription tier, message
usage and Stripe billing references.
"""
import uuid
from tortoise import fields, models

from .enums import Role, SubscriptionTier

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many ChatSessions (via related_name="chats")
    - Has many Documents uploaded (via related_name="documents")
    - Has many UserSessions (via related_name="sessions")

    Notes:
    - message_count only ever grows; it is bumped with an atomic UPDATE
      (see services.chat_orchestrator), never read-modify-write.
    - subscription_tier is changed by admins, by subscription creation and
      by Stripe webhooks.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    username = fields.CharField(max_length=256, unique=True, index=True)
    email = fields.CharField(max_length=256, unique=True, index=True)
    password_hash = fields.CharField(max_length=255)  # argon2 hash, never plain text
    role = fields.CharEnumField(Role, max_length=16, default=Role.USER)
    subscription_tier = fields.CharEnumField(SubscriptionTier, max_length=16, default=SubscriptionTier.FREE)
    message_count = fields.IntField(default=0)
    stripe_customer_id = fields.CharField(max_length=255, null=True, unique=True, index=True)
    stripe_subscription_id = fields.CharField(max_length=255, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "users"
