"""
Database models for chat sessions and their messages.
A chat session is one conversation thread in a single category; messages
are appended to it in creation order and never edited.
"""
import uuid
from tortoise import fields, models

from .enums import ChatCategory, Sender

class ChatSession(models.Model):
    """
    Chat session database model.

    Relationships:
    - Optionally belongs to a User (null user = guest chat). Ownership is
      set at creation and never reassigned.
    - Has many Messages (via related_name="messages")
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="chats",
        null=True,
        on_delete=fields.CASCADE,
    )
    title = fields.CharField(max_length=128, null=True)  # Derived from the first message when unset
    category = fields.CharEnumField(ChatCategory, max_length=16, default=ChatCategory.AHKAM)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)  # Bumped on every message and category switch

    class Meta:
        table = "chat_sessions"


class Message(models.Model):
    id = fields.IntField(pk=True)
    chat = fields.ForeignKeyField("models.ChatSession", related_name="messages", on_delete=fields.CASCADE)
    content = fields.TextField()
    sender = fields.CharEnumField(Sender, max_length=8)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "messages"
        ordering = ["created_at", "id"]
