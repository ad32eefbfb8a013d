from fastapi import APIRouter, Depends, Response, status
from tortoise import timezone

from marefa.api.deps import ACCESS_COOKIE, RequestContext, get_current_user, get_request_context
from marefa.api.serializers import user_to_dict
from marefa.config import settings
from marefa.core.errors import DuplicateEmail, DuplicateUsername, InvalidCredentials
from marefa.core.security import SESSION_MAX_AGE, create_access_token, hash_password, verify_password
from marefa.models.enums import Role
from marefa.models.session import UserSession
from marefa.models.user import User
from marefa.schemas.auth import ChangePasswordIn, LoginIn, RegisterIn

router = APIRouter(prefix="/auth", tags=["auth"])


async def _open_session(user: User, response: Response) -> str:
    """
    Create a server-side session for ``user``, set the HttpOnly cookie and
    return the token.
    """
    session = await UserSession.create(user=user, expires_at=timezone.now() + SESSION_MAX_AGE)
    token = create_access_token(str(user.id), Role(user.role).value, str(session.id))
    response.set_cookie(
        ACCESS_COOKIE,
        token,
        max_age=int(SESSION_MAX_AGE.total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return token


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, response: Response):
    """
    Register a new user account and sign it in.

    Email and username must both be unused; nothing is created otherwise.

    Returns:
        dict: {"success": True, "data": {"user": ..., "accessToken": ...}}

    Raises:
        DuplicateEmail (400): EMAIL_EXISTS
        DuplicateUsername (400): USERNAME_EXISTS
        400 VALIDATION_ERROR: malformed email, short username/password
    """
    email = body.email.strip().lower()
    if await User.filter(email=email).exists():
        raise DuplicateEmail()
    if await User.filter(username=body.username).exists():
        raise DuplicateUsername()

    u = await User.create(
        username=body.username,
        email=email,
        password_hash=hash_password(body.password),
        role=Role.USER,
    )
    token = await _open_session(u, response)
    return {"success": True, "data": {"user": user_to_dict(u), "accessToken": token}}


@router.post("/login")
async def login(body: LoginIn, response: Response):
    """
    Authenticate with email + password and open a session.

    The token is returned in the body and also set as the HttpOnly
    "accessToken" cookie.

    Raises:
        InvalidCredentials (401): unknown email or wrong password
    """
    user = await User.get_or_none(email=body.email.strip().lower())
    if not user or not verify_password(body.password, user.password_hash):
        raise InvalidCredentials()
    token = await _open_session(user, response)
    return {"success": True, "data": {"user": user_to_dict(user), "accessToken": token}}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """
    Current authenticated user (401 when there is no live session).
    """
    return {"success": True, "data": user_to_dict(user)}


@router.post("/logout")
async def logout(response: Response, ctx: RequestContext = Depends(get_request_context)):
    """
    Close the caller's session and clear the cookie.
    Always succeeds, even without a session.
    """
    if ctx.session_id is not None:
        await UserSession.filter(id=ctx.session_id).delete()
    response.delete_cookie(ACCESS_COOKIE)
    return {"success": True, "data": {"message": "Logged out successfully"}}


@router.post("/change-password")
async def change_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Change the password of the logged-in user after re-checking the
    current one.
    """
    if not verify_password(body.currentPassword, user.password_hash):
        raise InvalidCredentials("Current password is incorrect")
    user.password_hash = hash_password(body.newPassword)
    await user.save(update_fields=["password_hash", "updated_at"])
    return {"success": True, "data": {"ok": True}}
