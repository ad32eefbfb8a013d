"""
Chat Orchestrator

Chat session lifecycle: Created -> Active (messages exchanged)
-> [category switched -> Active] -> Deleted.

Every operation takes the requester explicitly (``None`` for a guest).
A chat with an owner is only reachable by that owner; a guest chat
(no owner) is reachable by anyone holding its id.
"""
import logging
from typing import List, Optional, Tuple

from tortoise import timezone
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from ..config import settings
from ..core.errors import (
    Forbidden,
    GuestLimitReached,
    GenerationFailed,
    NotFound,
    QuotaExceeded,
    TierInsufficient,
    Unauthenticated,
    ValidationError,
)
from ..models.chat import ChatSession, Message
from ..models.document import Document
from ..models.enums import ChatCategory, Sender, SubscriptionTier
from ..models.user import User
from .llm_base import ChatModelService
from .prompts import (
    FALLBACK_REPLY,
    MAX_CATALOGUE_ENTRIES,
    build_chat_turns,
    derive_title,
    transition_message,
)
from .quota import can_access_category, evaluate_send

logger = logging.getLogger("uvicorn.error")


def _tier_of(requester: Optional[User]) -> SubscriptionTier:
    return requester.subscription_tier if requester else SubscriptionTier.FREE


def ensure_can_access(chat: ChatSession, requester: Optional[User]) -> None:
    """Owned chats are private to their owner."""
    if chat.user_id is None:
        return
    if requester is None or str(requester.id) != str(chat.user_id):
        raise Forbidden()


async def load_chat(chat_id, requester: Optional[User]) -> ChatSession:
    chat = await ChatSession.get_or_none(id=chat_id)
    if not chat:
        raise NotFound("Chat not found")
    ensure_can_access(chat, requester)
    return chat


async def create_chat(owner: Optional[User], category: ChatCategory = ChatCategory.AHKAM) -> ChatSession:
    """Open an empty chat; research mode is gated on the owner's tier (guests count as free)."""
    category = ChatCategory(category)
    if not can_access_category(_tier_of(owner), category):
        raise TierInsufficient()
    return await ChatSession.create(user=owner, category=category)


async def list_chats(owner: User) -> List[ChatSession]:
    return await ChatSession.filter(user_id=owner.id).order_by("-updated_at")


async def get_messages(chat_id, requester: Optional[User]) -> List[Message]:
    chat = await load_chat(chat_id, requester)
    return await Message.filter(chat_id=chat.id).order_by("created_at", "id")


async def update_chat(
    chat_id,
    requester: Optional[User],
    title: Optional[str] = None,
    category: Optional[ChatCategory] = None,
) -> Tuple[ChatSession, Optional[Message]]:
    """
    Rename a chat and/or move it to another mode.

    Every check runs before anything is written, so a rejected request
    leaves the chat untouched. A category change appends the transition
    message in the same transaction; no model call is made.

    Returns the chat and the transition message (None when the category
    did not change).
    """
    if title is None and category is None:
        raise ValidationError("Nothing to update")

    chat = await load_chat(chat_id, requester)

    fields = []
    if title is not None:
        title = title.strip()[:128]
        if not title:
            raise ValidationError("Title must not be empty")
        if title != chat.title:
            chat.title = title
            fields.append("title")

    switched = False
    if category is not None:
        category = ChatCategory(category)
        if not can_access_category(_tier_of(requester), category):
            raise TierInsufficient()
        if chat.category != category:
            chat.category = category
            fields.append("category")
            switched = True

    if not fields:
        return chat, None

    notice = None
    async with in_transaction() as conn:
        await chat.save(using_db=conn, update_fields=[*fields, "updated_at"])
        if switched:
            notice = await Message.create(
                chat_id=chat.id,
                content=transition_message(chat.category),
                sender=Sender.AI,
                using_db=conn,
            )
    return chat, notice


async def rename_chat(chat_id, title: str, requester: Optional[User]) -> ChatSession:
    chat, _ = await update_chat(chat_id, requester, title=title or "")
    return chat


async def switch_category(
    chat_id,
    new_category: ChatCategory,
    requester: Optional[User],
) -> Tuple[ChatSession, Optional[Message]]:
    return await update_chat(chat_id, requester, category=new_category)


async def delete_chat(chat_id, requester: Optional[User]) -> None:
    """Owner-only; removes the messages, then the chat."""
    if requester is None:
        raise Unauthenticated()
    chat = await ChatSession.get_or_none(id=chat_id)
    if not chat:
        raise NotFound("Chat not found")
    if chat.user_id is None or str(chat.user_id) != str(requester.id):
        raise Forbidden()
    async with in_transaction() as conn:
        await Message.filter(chat_id=chat.id).using_db(conn).delete()
        await chat.delete(using_db=conn)


async def _record_user_message(chat: ChatSession, content: str, requester: Optional[User]) -> Message:
    """
    Store the inbound message, charge the requester one message and touch
    the chat, all in one transaction.

    The free-tier increment is conditional on the counter still being under
    the limit, so concurrent sends cannot push it past the quota; losing
    that race rolls the insert back. Guest sends lock the chat row and
    recount its user messages before inserting.
    """
    now = timezone.now()
    async with in_transaction() as conn:
        if requester is None:
            await ChatSession.filter(id=chat.id).select_for_update().using_db(conn).first()
            sent = await Message.filter(chat_id=chat.id, sender=Sender.USER).using_db(conn).count()
            if sent >= settings.guest_message_limit:
                raise GuestLimitReached()
        else:
            qs = User.filter(id=requester.id)
            if requester.subscription_tier == SubscriptionTier.FREE:
                qs = qs.filter(message_count__lt=settings.free_message_limit)
            charged = await qs.using_db(conn).update(message_count=F("message_count") + 1, updated_at=now)
            if not charged:
                raise QuotaExceeded()

        message = await Message.create(chat_id=chat.id, content=content, sender=Sender.USER, using_db=conn)

        chat_updates = {"updated_at": now}
        if not chat.title:
            chat_updates["title"] = derive_title(content)
        await ChatSession.filter(id=chat.id).using_db(conn).update(**chat_updates)
    return message


async def _record_ai_message(chat: ChatSession, content: str) -> Message:
    async with in_transaction() as conn:
        message = await Message.create(chat_id=chat.id, content=content, sender=Sender.AI, using_db=conn)
        await ChatSession.filter(id=chat.id).using_db(conn).update(updated_at=timezone.now())
    return message


async def send_message(
    chat_id,
    content: str,
    requester: Optional[User],
    model_service: ChatModelService,
) -> Message:
    """
    Handle one user message and return the stored assistant reply.

    Steps:
      1. load the chat (NotFound) and check ownership (Forbidden)
      2. evaluate the quota/tier policy against fresh counters
      3. store the user message and charge the requester (one transaction)
      4. build the prompt from the category instruction and full history
      5. call the model once; on failure raise GenerationFailed and keep
         the user message
      6. store and return the reply
    """
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")

    chat = await load_chat(chat_id, requester)

    guest_count = 0
    if requester is not None:
        await requester.refresh_from_db(fields=["subscription_tier", "message_count"])
    else:
        guest_count = await Message.filter(chat_id=chat.id, sender=Sender.USER).count()

    evaluate_send(
        authenticated=requester is not None,
        tier=requester.subscription_tier if requester else None,
        message_count=requester.message_count if requester else 0,
        category=chat.category,
        guest_message_count=guest_count,
    ).raise_if_denied()

    await _record_user_message(chat, content, requester)

    history = await Message.filter(chat_id=chat.id).order_by("created_at", "id")
    documents = None
    if chat.category == ChatCategory.RESEARCH:
        documents = await Document.all().order_by("-created_at").limit(MAX_CATALOGUE_ENTRIES)
    turns = build_chat_turns(chat.category, history, documents)

    try:
        completion = await model_service.complete(
            turns,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )
    except GenerationFailed:
        raise
    except Exception:
        logger.exception("[chat] model call failed for chat %s", chat.id)
        raise GenerationFailed()

    reply = (completion.content or "").strip() or FALLBACK_REPLY
    return await _record_ai_message(chat, reply)
