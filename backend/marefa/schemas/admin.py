"""
Pydantic schemas for admin endpoints.
Defines request/response models for user management, the chat overview
and research documents.
"""
from pydantic import BaseModel
from typing import Optional, List, Literal

# ========== Common return model ==========
class AdminUserBase(BaseModel):
    """
    User information returned in admin API responses.
    """
    id: str
    username: str
    email: str
    role: Literal["user", "admin"]
    subscriptionTier: Literal["free", "basic", "research", "teams"]
    messageCount: int
    stripeCustomerId: Optional[str] = None
    stripeSubscriptionId: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class AdminUserListOut(BaseModel):
    items: List[AdminUserBase]
    offset: int
    limit: int
    total: int


class AdminUserDetailOut(BaseModel):
    user: AdminUserBase


# ========== Input model ==========
class AdminUserUpdateIn(BaseModel):
    """
    Request model for changing a user's tier and/or role.
    Only provided fields are updated.
    """
    subscriptionTier: Optional[Literal["free", "basic", "research", "teams"]] = None
    role: Optional[Literal["user", "admin"]] = None  # Cannot demote self or the last admin

    class Config:
        extra = "forbid"


# ========== Chats overview ==========
class AdminChatItem(BaseModel):
    id: str
    userId: Optional[str] = None
    username: Optional[str] = None  # None for guest chats
    title: Optional[str] = None
    category: str
    messageCount: int
    lastMessage: Optional[str] = None  # Most recent message, truncated for preview
    createdAt: str
    updatedAt: str


class AdminChatListOut(BaseModel):
    items: List[AdminChatItem]
    offset: int
    limit: int
    total: int


# ========== Documents ==========
class DocumentOut(BaseModel):
    id: str
    title: str
    author: str
    category: str
    description: Optional[str] = None
    fileUrl: str
    fileType: str
    uploadedById: str
    uploadedBy: Optional[str] = None  # Uploader username
    createdAt: str
    updatedAt: str


class DocumentListOut(BaseModel):
    items: List[DocumentOut]
    total: int
