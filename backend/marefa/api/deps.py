import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from tortoise import timezone

from marefa.core.security import decode_access_token
from marefa.models.enums import Role
from marefa.models.session import UserSession
from marefa.models.user import User

ACCESS_COOKIE = "accessToken"


def _extract_token(request: Request, authorization: str | None) -> str | None:
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    # 2) Secondly HttpOnly Cookie: accessToken
    return request.cookies.get(ACCESS_COOKIE)


async def _resolve_session(token: str) -> tuple[User, uuid.UUID]:
    """
    Map a session token to its user.

    Raises HTTPException (401) when the token is malformed, expired, or its
    server-side session was closed.
    """
    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload.get("sub"))
        session_id = uuid.UUID(payload.get("jti"))
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    live = await UserSession.filter(id=session_id, user_id=user_id, expires_at__gt=timezone.now()).exists()
    if not live:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user, session_id


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    The session token is read from either:
    1. Authorization header (Bearer token)
    2. HttpOnly cookie (accessToken)

    Raises:
        HTTPException (401): AUTH_REQUIRED, AUTH_INVALID_TOKEN or AUTH_USER_NOT_FOUND
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")
    user, _ = await _resolve_session(token)
    return user


@dataclass
class RequestContext:
    """Per-request view of who is calling; ``user`` is None for guests."""
    user: Optional[User] = None
    session_id: Optional[uuid.UUID] = None


async def get_request_context(
    request: Request,
    authorization: str | None = Header(default=None),
) -> RequestContext:
    """
    Resolve the optional caller for guest-capable endpoints.
    A missing, invalid or closed session yields an anonymous context instead of 401.
    """
    token = _extract_token(request, authorization)
    if not token:
        return RequestContext()
    try:
        user, session_id = await _resolve_session(token)
    except HTTPException:
        return RequestContext()
    return RequestContext(user=user, session_id=session_id)


async def require_admin(current: User = Depends(get_current_user)) -> User:
    """
    FastAPI dependency to ensure the current user is an administrator.

    Raises:
        HTTPException (403): If user is not an admin (FORBIDDEN_ADMIN_ONLY)
        HTTPException (401): If user is not authenticated (from get_current_user)
    """
    if current.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
    return current
