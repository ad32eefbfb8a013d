"""
Pydantic schemas for chat session and message endpoints.
"""
from pydantic import constr
from typing import Optional

from marefa.models.enums import ChatCategory
from .auth import StrictModel


class CreateChatIn(StrictModel):
    """
    Request model for opening a chat. Category defaults to ahkam.
    """
    category: ChatCategory = ChatCategory.AHKAM


class UpdateChatIn(StrictModel):
    """
    Request model for renaming a chat and/or switching its category.
    At least one field must be given.
    """
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=128)] = None
    category: Optional[ChatCategory] = None


class SendMessageIn(StrictModel):
    """
    Request model for sending a message.
    ``category`` is what the client believes the chat's mode is; the stored
    chat category is what the server uses.
    """
    content: constr(strip_whitespace=True, min_length=1, max_length=8000)
    category: Optional[ChatCategory] = None
