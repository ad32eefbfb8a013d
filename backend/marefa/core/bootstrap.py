# marefa/core/bootstrap.py
"""
Bootstrap module for application initialization.
Creates the default admin account on first startup.
"""
import os
import logging
from marefa.models.enums import Role, SubscriptionTier
from marefa.models.user import User
from marefa.core.security import hash_password

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin() -> None:
    """
    If no admin exists in the database, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no user with role="admin"
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_EMAIL    (default: "admin@marefasource.com")
      ADMIN_PASSWORD (required, otherwise won't create)
    The admin gets the teams tier, so every chat category is open to it.
    """
    if await User.filter(role=Role.ADMIN).exists():
        return

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@marefasource.com").strip().lower()

    existing = await User.get_or_none(email=admin_email)
    if existing:
        # Promote the account that already owns the admin email
        existing.role = Role.ADMIN
        existing.subscription_tier = SubscriptionTier.TEAMS
        await existing.save(update_fields=["role", "subscription_tier", "updated_at"])
        logger.warning("[bootstrap] Promoted existing user to admin -> username=%s id=%s", existing.username, existing.id)
        return

    # Username may already be taken by a regular account
    base_username = admin_username
    suffix = 1
    while await User.filter(username=admin_username).exists():
        suffix += 1
        admin_username = f"{base_username}{suffix}"

    u = await User.create(
        username=admin_username,
        email=admin_email,
        password_hash=hash_password(admin_password),
        role=Role.ADMIN,
        subscription_tier=SubscriptionTier.TEAMS,
    )
    logger.warning("[bootstrap] Created default admin -> username=%s email=%s id=%s",
                   u.username, u.email, u.id)
