"""
Model -> JSON payload helpers shared by the routers.
Keys are camelCase, ids are strings (message ids stay integers).
"""
import datetime as dt

from marefa.models.chat import ChatSession, Message
from marefa.models.document import Document
from marefa.models.enums import ChatCategory, Role, Sender, SubscriptionTier
from marefa.models.user import User
from marefa.services.quota import remaining_messages


def iso(value: dt.datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_to_dict(u: User) -> dict:
    """User payload without the password hash."""
    return {
        "id": str(u.id),
        "username": u.username,
        "email": u.email,
        "role": Role(u.role).value,
        "subscriptionTier": SubscriptionTier(u.subscription_tier).value,
        "messageCount": u.message_count,
        "remainingMessages": remaining_messages(u.subscription_tier, u.message_count),
        "stripeCustomerId": u.stripe_customer_id,
        "stripeSubscriptionId": u.stripe_subscription_id,
        "createdAt": iso(u.created_at),
        "updatedAt": iso(u.updated_at),
    }


def chat_to_dict(c: ChatSession) -> dict:
    return {
        "id": str(c.id),
        "userId": str(c.user_id) if c.user_id else None,
        "title": c.title,
        "category": ChatCategory(c.category).value,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
    }


def message_to_dict(m: Message) -> dict:
    return {
        "id": m.id,
        "chatId": str(m.chat_id),
        "content": m.content,
        "sender": Sender(m.sender).value,
        "createdAt": iso(m.created_at),
    }


def document_to_dict(d: Document) -> dict:
    uploader = d.uploaded_by if isinstance(d.uploaded_by, User) else None
    return {
        "id": str(d.id),
        "title": d.title,
        "author": d.author,
        "category": d.category,
        "description": d.description,
        "fileUrl": d.file_url,
        "fileType": d.file_type,
        "uploadedById": str(d.uploaded_by_id),
        "uploadedBy": uploader.username if uploader else None,
        "createdAt": iso(d.created_at),
        "updatedAt": iso(d.updated_at),
    }
