from __future__ import annotations

import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from tortoise.expressions import Q
from tortoise.functions import Count, Max

from marefa.api.deps import require_admin
from marefa.api.serializers import chat_to_dict, document_to_dict, user_to_dict
from marefa.models.chat import ChatSession, Message
from marefa.models.enums import ChatCategory, Role, SubscriptionTier
from marefa.models.user import User
from marefa.schemas.admin import (
    AdminChatListOut,
    AdminUserDetailOut,
    AdminUserListOut,
    AdminUserUpdateIn,
    DocumentListOut,
    DocumentOut,
)
from marefa.services import documents

router = APIRouter(prefix="/admin", tags=["admin"])

# Characters of the last message shown in the chats overview
PREVIEW_CHARS = 120


# ==============================================================================
# I. User Management Interface
#     Prefix: /api/admin/users
# ==============================================================================
async def _count_admins() -> int:
    """
    Count the users with role="admin".

    Note:
        Used to prevent demoting the last admin user.
    """
    return await User.filter(role=Role.ADMIN).count()


async def _get_user_or_404(user_id: uuid.UUID) -> User:
    u = await User.get_or_none(id=user_id)
    if not u:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "USER_NOT_FOUND", "message": "User not found"},
        )
    return u


@router.get(
    "/users",
    response_model=AdminUserListOut,
    dependencies=[Depends(require_admin)],
)
async def list_users(
    q: str | None = Query(default=None, description="Fuzzy search by username/email"),
    tier: SubscriptionTier | None = Query(default=None, description="Filter by subscription tier"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Get paginated list of all users (admin only).

    Results are ordered by creation date (newest first).

    Args:
        q: Optional search query for fuzzy matching username or email
        tier: Optional exact subscription tier
        offset: Number of items to skip (for pagination)
        limit: Maximum number of items to return (1-100)

    Raises:
        HTTPException (403): If user is not an admin
        HTTPException (401): If user is not authenticated
    """
    qs = User.all().order_by("-created_at")
    if q:
        qs = qs.filter(Q(username__icontains=q) | Q(email__icontains=q))
    if tier:
        qs = qs.filter(subscription_tier=tier)

    total = await qs.count()
    rows = await qs.offset(offset).limit(limit)
    items = [user_to_dict(u) for u in rows]

    return {"items": items, "offset": offset, "limit": limit, "total": total}


@router.get(
    "/users/{user_id}",
    response_model=AdminUserDetailOut,
    dependencies=[Depends(require_admin)],
)
async def get_user_detail(user_id: uuid.UUID):
    """
    Get one user (admin only).

    Raises:
        HTTPException (404): If user not found
    """
    u = await _get_user_or_404(user_id)
    return {"user": user_to_dict(u)}


@router.patch("/users/{user_id}", response_model=AdminUserDetailOut)
async def update_user(
    user_id: uuid.UUID,
    body: AdminUserUpdateIn,
    current_admin: User = Depends(require_admin),
):
    """
    Change a user's subscription tier and/or role (admin only).

    Tier changes made here do not touch Stripe; the next subscription
    webhook for the user overrides them.

    Raises:
        HTTPException (404): If user not found
        HTTPException (400): CANNOT_DEMOTE_SELF or LAST_ADMIN_FORBIDDEN
    """
    u = await _get_user_or_404(user_id)
    fields = []

    # 1) Tier
    if body.subscriptionTier and body.subscriptionTier != u.subscription_tier:
        u.subscription_tier = SubscriptionTier(body.subscriptionTier)
        fields.append("subscription_tier")

    # 2) Role (cannot demote self; cannot demote last admin to user)
    if body.role and body.role != u.role:
        if str(current_admin.id) == str(u.id) and body.role != Role.ADMIN:
            raise HTTPException(
                status_code=400,
                detail={"code": "CANNOT_DEMOTE_SELF", "message": "Cannot demote yourself"},
            )

        if u.role == Role.ADMIN and body.role == Role.USER:
            admin_count = await _count_admins()
            if admin_count <= 1:
                raise HTTPException(
                    status_code=400,
                    detail={"code": "LAST_ADMIN_FORBIDDEN", "message": "Cannot demote the last admin"},
                )
        u.role = Role(body.role)
        fields.append("role")

    if fields:
        await u.save(update_fields=[*fields, "updated_at"])
    return {"user": user_to_dict(u)}


# ==============================================================================
# II. Chats Overview
#     Prefix: /api/admin/chats
# ==============================================================================
@router.get(
    "/chats",
    response_model=AdminChatListOut,
    dependencies=[Depends(require_admin)],
)
async def list_all_chats(
    category: ChatCategory | None = Query(default=None),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Every chat in the system, most recently active first, with owner,
    message count and a preview of the last message (admin only).
    """
    qs = ChatSession.all().order_by("-updated_at")
    if category:
        qs = qs.filter(category=category)

    total = await qs.count()
    rows = (
        await qs.offset(offset)
        .limit(limit)
        .annotate(message_count=Count("messages"), last_message_id=Max("messages__id"))
        .prefetch_related("user")
    )

    # Message ids grow with insertion; the highest id is the latest message
    last_ids = [c.last_message_id for c in rows if c.last_message_id is not None]
    previews = {}
    if last_ids:
        previews = {
            m.id: m.content[:PREVIEW_CHARS]
            for m in await Message.filter(id__in=last_ids)
        }

    items = []
    for c in rows:
        item = chat_to_dict(c)
        item.update({
            "username": c.user.username if c.user else None,
            "messageCount": c.message_count,
            "lastMessage": previews.get(c.last_message_id),
        })
        items.append(item)

    return {"items": items, "offset": offset, "limit": limit, "total": total}


# ==============================================================================
# III. Research Documents
#     Prefix: /api/admin/documents
# ==============================================================================
@router.get(
    "/documents",
    response_model=DocumentListOut,
    dependencies=[Depends(require_admin)],
)
async def list_documents():
    """
    Uploaded research documents, newest first (admin only).
    """
    rows = await documents.list_documents()
    return {"items": [document_to_dict(d) for d in rows], "total": len(rows)}


@router.get(
    "/documents/{document_id}",
    response_model=DocumentOut,
    dependencies=[Depends(require_admin)],
)
async def get_document(document_id: uuid.UUID):
    doc = await documents.get_document(document_id)
    return document_to_dict(doc)


@router.post(
    "/documents",
    response_model=DocumentOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    file: UploadFile = File(...),
    title: str = Form(...),
    author: str = Form(...),
    category: str = Form(...),
    description: str | None = Form(default=None),
    current_admin: User = Depends(require_admin),
):
    """
    Upload a research document (PDF, DOC, DOCX or TXT, at most 10MB).

    The file is stored under UPLOAD_DIR and the document becomes part of
    the catalogue sent with research-mode prompts.

    Raises:
        ValidationError (400): missing field, bad file type or too large
    """
    doc = await documents.create_document(
        file,
        current_admin,
        title=title,
        author=author,
        category=category,
        description=description,
    )
    return document_to_dict(doc)


@router.delete(
    "/documents/{document_id}",
    dependencies=[Depends(require_admin)],
)
async def delete_document(document_id: uuid.UUID):
    """
    Delete a document row and its stored file (admin only).

    Raises:
        NotFound (404): unknown document id
    """
    await documents.delete_document(document_id)
    return {"success": True, "data": {"ok": True}}
