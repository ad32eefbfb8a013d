import uuid

from fastapi import APIRouter, Body, Depends, status

from marefa.api.deps import RequestContext, get_current_user, get_request_context
from marefa.api.serializers import chat_to_dict, message_to_dict
from marefa.models.user import User
from marefa.schemas.chat import CreateChatIn, SendMessageIn, UpdateChatIn
from marefa.services import chat_orchestrator as chats
from marefa.services.llm_base import ChatModelService
from marefa.services.llm_factory import get_chat_model_service

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=dict)
async def list_chats(user: User = Depends(get_current_user)):
    """
    Chats owned by the authenticated user, most recently active first.

    Raises:
        HTTPException (401): If user is not authenticated
    """
    rows = await chats.list_chats(user)
    return {"success": True, "data": [chat_to_dict(c) for c in rows]}


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_chat(
    body: CreateChatIn | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Open a new chat. Guests may create chats too; theirs have no owner.

    Args:
        body: Optional {"category": "ahkam" | "sukoon" | "research"}, default ahkam

    Raises:
        TierInsufficient (403): research category without a research/teams tier
    """
    category = body.category if body else CreateChatIn().category
    chat = await chats.create_chat(ctx.user, category)
    return {"success": True, "data": chat_to_dict(chat)}


@router.get("/{chat_id}", response_model=dict)
async def get_chat(chat_id: uuid.UUID, ctx: RequestContext = Depends(get_request_context)):
    """
    Chat metadata.

    Raises:
        NotFound (404): unknown chat id
        Forbidden (403): chat owned by someone else
    """
    chat = await chats.load_chat(chat_id, ctx.user)
    return {"success": True, "data": chat_to_dict(chat)}


@router.patch("/{chat_id}", response_model=dict)
async def update_chat(
    chat_id: uuid.UUID,
    body: UpdateChatIn,
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Rename a chat and/or switch its category.

    A category switch appends an assistant message announcing the new mode;
    it is returned as ``transitionMessage`` (null when nothing was switched).

    Raises:
        ValidationError (400): neither title nor category given
        TierInsufficient (403): switching to research without the tier
    """
    chat, notice = await chats.update_chat(
        chat_id,
        ctx.user,
        title=body.title,
        category=body.category,
    )

    return {
        "success": True,
        "data": {
            "chat": chat_to_dict(chat),
            "transitionMessage": message_to_dict(notice) if notice else None,
        },
    }


@router.delete("/{chat_id}", response_model=dict)
async def delete_chat(chat_id: uuid.UUID, user: User = Depends(get_current_user)):
    """
    Delete an owned chat together with its messages.

    Raises:
        NotFound (404): unknown chat id
        Forbidden (403): guest chat or chat owned by someone else
    """
    await chats.delete_chat(chat_id, user)
    return {"success": True, "data": {"ok": True}}


@router.get("/{chat_id}/messages", response_model=dict)
async def list_messages(chat_id: uuid.UUID, ctx: RequestContext = Depends(get_request_context)):
    """
    All messages of a chat in creation order.
    """
    rows = await chats.get_messages(chat_id, ctx.user)
    return {"success": True, "data": [message_to_dict(m) for m in rows]}


@router.post("/{chat_id}/messages", response_model=dict)
async def send_message(
    chat_id: uuid.UUID,
    body: SendMessageIn,
    ctx: RequestContext = Depends(get_request_context),
    model_service: ChatModelService = Depends(get_chat_model_service),
):
    """
    Send a user message and get the assistant's reply.

    The chat's stored category decides the system instruction; ``category``
    in the body is accepted for client convenience only.

    Returns:
        dict: {"success": True, "data": <assistant message>}

    Raises:
        TierInsufficient (403): research chat without a research/teams tier
        GuestLimitReached (403): guest already sent the per-chat allowance
        QuotaExceeded (403): free tier lifetime allowance used up
        GenerationFailed (500): model call failed; the user message is kept
    """
    reply = await chats.send_message(chat_id, body.content, ctx.user, model_service)
    return {"success": True, "data": message_to_dict(reply)}
