from fastapi import APIRouter, Depends, Header, Request

from marefa.api.deps import get_current_user
from marefa.config import settings
from marefa.models.user import User
from marefa.schemas.billing import PublicConfigOut, SubscriptionIn
from marefa.services.billing import StripeClient, get_or_create_subscription, get_stripe_client, handle_webhook, verify_webhook

router = APIRouter(tags=["billing"])


@router.post("/get-or-create-subscription", response_model=dict)
async def subscribe(
    body: SubscriptionIn,
    user: User = Depends(get_current_user),
    client: StripeClient = Depends(get_stripe_client),
):
    """
    Start a paid subscription for the logged-in user, or move an active
    one to another plan.

    Returns:
        dict: {"success": True, "data": {"subscriptionId": ..., "clientSecret": ...}}

    Raises:
        InvalidPlan (400): plan is not basic, research or teams
        BillingError (502): Stripe call failed
    """
    result = await get_or_create_subscription(user, body.plan, client)
    return {"success": True, "data": result}


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    client: StripeClient = Depends(get_stripe_client),
):
    """
    Stripe webhook endpoint.

    The raw body is verified against the ``Stripe-Signature`` header before
    anything is parsed.

    Raises:
        InvalidSignature (400): missing, stale or mismatched signature
    """
    payload = await request.body()
    event = verify_webhook(payload, stripe_signature)
    return await handle_webhook(event, client)


@router.get("/config", response_model=PublicConfigOut)
async def public_config():
    """
    Client-safe settings: Stripe publishable key and message allowances.
    """
    return {
        "stripePublishableKey": settings.stripe_publishable_key or None,
        "freeMessageLimit": settings.free_message_limit,
        "guestMessageLimit": settings.guest_message_limit,
    }
