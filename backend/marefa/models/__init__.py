"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: account, role, subscription tier and billing references
- UserSession: server-side login session (token jti)
- ChatSession: one conversation thread
- Message: one turn in a conversation
- Document: uploaded research reference work
"""
from .enums import ChatCategory, Role, Sender, SubscriptionTier
from .user import User
from .session import UserSession
from .chat import ChatSession, Message
from .document import Document
