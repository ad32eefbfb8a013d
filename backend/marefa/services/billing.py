"""
Subscription Manager

Stripe customers and subscriptions for the paid tiers, and reconciliation
of a user's tier from Stripe webhook events. Stripe is called through its
REST API with httpx (form-encoded requests, JSON responses).
"""
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.errors import BillingError, InvalidPlan, InvalidSignature, ValidationError
from ..models.enums import SubscriptionTier
from ..models.user import User

logger = logging.getLogger("uvicorn.error")

# Paid plans that can be bought; each maps 1:1 to a tier
PLAN_TIERS = {
    "basic": SubscriptionTier.BASIC,
    "research": SubscriptionTier.RESEARCH,
    "teams": SubscriptionTier.TEAMS,
}

# Stripe product names as configured in the dashboard
PRODUCT_TIERS = {
    "Basic Plan": SubscriptionTier.BASIC,
    "Research Plan": SubscriptionTier.RESEARCH,
    "Teams Plan": SubscriptionTier.TEAMS,
}

SUBSCRIPTION_EVENTS = ("customer.subscription.updated", "customer.subscription.deleted")


def encode_form(params: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """
    Flatten nested params to Stripe's form keys.

    {"items": [{"price": "p"}], "expand": ["x"]}
      -> {"items[0][price]": "p", "expand[0]": "x"}
    """
    out: Dict[str, str] = {}
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            out.update(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                if isinstance(item, dict):
                    out.update(encode_form(item, f"{name}[{i}]"))
                else:
                    out[f"{name}[{i}]"] = _form_value(item)
        else:
            out[name] = _form_value(value)
    return out


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StripeClient:
    """Minimal async Stripe REST client."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or settings.stripe_secret_key
        self.base_url = (base_url or settings.stripe_api_url).rstrip("/")

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Execute an authenticated Stripe API request and return parsed JSON."""
        if not self.is_available():
            logger.error("[billing] STRIPE_SECRET_KEY not configured")
            raise BillingError("Billing is not configured on server.")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Stripe-Version": settings.stripe_api_version,
        }
        try:
            async with httpx.AsyncClient(timeout=30) as client:
                resp = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    data=encode_form(data) if data else None,
                    params=encode_form(params) if params else None,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("[billing] %s %s failed: %r", method, path, e)
            raise BillingError()

        try:
            payload = resp.json()
        except ValueError:
            logger.error("[billing] %s %s returned non-JSON (HTTP %s)", method, path, resp.status_code)
            raise BillingError()

        if resp.status_code >= 400:
            message = (payload.get("error") or {}).get("message") if isinstance(payload, dict) else None
            logger.error("[billing] %s %s -> HTTP %s: %s", method, path, resp.status_code, message)
            raise BillingError(message or BillingError.message)
        return payload

    async def create_customer(self, email: str, name: str) -> Dict[str, Any]:
        return await self.request("POST", "/v1/customers", data={"email": email, "name": name})

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return await self.request(
            "GET",
            f"/v1/subscriptions/{subscription_id}",
            params={"expand": ["latest_invoice.payment_intent"]},
        )

    async def create_subscription(self, customer_id: str, price_id: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            "/v1/subscriptions",
            data={
                "customer": customer_id,
                "items": [{"price": price_id}],
                "payment_behavior": "default_incomplete",
                "expand": ["latest_invoice.payment_intent"],
            },
        )

    async def update_subscription_price(self, subscription_id: str, item_id: str, price_id: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            f"/v1/subscriptions/{subscription_id}",
            data={"items": [{"id": item_id, "price": price_id}]},
        )

    async def retrieve_product(self, product_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/v1/products/{product_id}")


# Global client instance
stripe_client = StripeClient()


def get_stripe_client() -> StripeClient:
    """FastAPI dependency; tests override it."""
    return stripe_client


def _client_secret(subscription: Dict[str, Any]) -> Optional[str]:
    invoice = subscription.get("latest_invoice")
    if not isinstance(invoice, dict):
        return None
    intent = invoice.get("payment_intent")
    if not isinstance(intent, dict):
        return None
    return intent.get("client_secret")


def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        raise BillingError("Subscription has no items")
    return items[0]


async def _set_user_fields(user: User, **fields) -> None:
    for name, value in fields.items():
        setattr(user, name, value)
    await user.save(update_fields=[*fields.keys(), "updated_at"])


async def get_or_create_subscription(user: User, plan: str, client: StripeClient) -> Dict[str, Optional[str]]:
    """
    Start or change the user's paid subscription.

    - existing active subscription: its price item is swapped in place and
      its existing payment secret is returned
    - otherwise: a customer is ensured, an incomplete subscription created
      and its id stored

    With OPTIMISTIC_TIER_UPGRADE (default) the tier is written right away,
    before payment is confirmed; a failed payment leaves the tier upgraded
    until a webhook says otherwise.
    """
    price_id = settings.plan_prices.get(plan)
    if plan not in PLAN_TIERS or not price_id:
        raise InvalidPlan()

    if user.stripe_subscription_id:
        current = await client.retrieve_subscription(user.stripe_subscription_id)
        if current.get("status") == "active":
            item = _first_item(current)
            await client.update_subscription_price(current["id"], item["id"], price_id)
            if settings.optimistic_tier_upgrade:
                await _set_user_fields(user, subscription_tier=PLAN_TIERS[plan])
            return {"subscriptionId": current["id"], "clientSecret": _client_secret(current)}
        # Expired or incomplete subscriptions are replaced by a new one

    customer_id = user.stripe_customer_id
    if not customer_id:
        customer = await client.create_customer(email=user.email, name=user.username)
        customer_id = customer["id"]
        await _set_user_fields(user, stripe_customer_id=customer_id)

    subscription = await client.create_subscription(customer_id, price_id)
    updates: Dict[str, Any] = {"stripe_subscription_id": subscription["id"]}
    if settings.optimistic_tier_upgrade:
        updates["subscription_tier"] = PLAN_TIERS[plan]
    await _set_user_fields(user, **updates)

    return {"subscriptionId": subscription["id"], "clientSecret": _client_secret(subscription)}


def verify_webhook(payload: bytes, signature_header: Optional[str], now: Optional[int] = None) -> Dict[str, Any]:
    """
    Verify a Stripe webhook and return the parsed event.

    Header format: ``t=<unix ts>,v1=<hex hmac-sha256>[,v1=...]``; the signed
    payload is ``"<t>.<raw body>"`` keyed with STRIPE_WEBHOOK_SECRET.
    """
    secret = settings.stripe_webhook_secret
    if not signature_header or not secret:
        logger.warning("[billing] webhook rejected: missing signature header or secret")
        raise InvalidSignature("Missing Stripe signature or webhook secret")

    timestamp = None
    signatures = []
    for part in signature_header.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not signatures:
        raise InvalidSignature()
    try:
        ts = int(timestamp)
    except ValueError:
        raise InvalidSignature()

    now = int(time.time()) if now is None else now
    if abs(now - ts) > settings.stripe_webhook_tolerance_seconds:
        logger.warning("[billing] webhook rejected: timestamp outside tolerance")
        raise InvalidSignature("Timestamp outside the tolerance zone")

    signed = f"{ts}.".encode("utf-8") + payload
    expected = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    if not any(hmac.compare_digest(expected, s) for s in signatures):
        logger.warning("[billing] webhook rejected: signature mismatch")
        raise InvalidSignature()

    try:
        event = json.loads(payload)
    except ValueError:
        raise ValidationError("Webhook payload is not valid JSON")
    if not isinstance(event, dict):
        raise ValidationError("Webhook payload is not an event object")
    return event


async def _tier_for_subscription(subscription: Dict[str, Any], client: StripeClient) -> SubscriptionTier:
    """Known price id first, then the Stripe product name, else basic."""
    price = _first_item(subscription).get("price") or {}
    price_tiers = {price_id: PLAN_TIERS[plan] for plan, price_id in settings.plan_prices.items()}
    if price.get("id") in price_tiers:
        return price_tiers[price["id"]]

    product = price.get("product")
    if isinstance(product, str):
        product = await client.retrieve_product(product)
    name = (product or {}).get("name")
    return PRODUCT_TIERS.get(name, SubscriptionTier.BASIC)


async def handle_webhook(event: Dict[str, Any], client: StripeClient) -> Dict[str, bool]:
    """
    Reconcile tiers from subscription events.

    active   -> tier of the subscribed plan
    canceled -> free
    """
    event_type = event.get("type")
    if event_type not in SUBSCRIPTION_EVENTS:
        logger.info("[billing] unhandled event type %s", event_type)
        return {"received": True}

    subscription = (event.get("data") or {}).get("object") or {}
    customer_id = subscription.get("customer")
    user = await User.get_or_none(stripe_customer_id=customer_id) if customer_id else None
    if not user:
        logger.warning("[billing] %s for unknown customer %s", event_type, customer_id)
        return {"received": True}

    status = subscription.get("status")
    if status == "active":
        tier = await _tier_for_subscription(subscription, client)
        await _set_user_fields(user, subscription_tier=tier, stripe_subscription_id=subscription.get("id"))
        logger.info("[billing] user %s -> tier %s", user.id, tier.value)
    elif status == "canceled":
        await _set_user_fields(user, subscription_tier=SubscriptionTier.FREE)
        logger.info("[billing] user %s subscription canceled -> free", user.id)
    return {"received": True}
