"""
Quota & Tier Policy

Pure decision logic: whether a message may be sent, and which chat
categories a tier can reach. No I/O; callers pass fresh values on every
request.
"""
from dataclasses import dataclass
from typing import Optional, Type

from ..config import settings
from ..core.errors import AppError, GuestLimitReached, QuotaExceeded, TierInsufficient
from ..models.enums import ChatCategory, SubscriptionTier

RESEARCH_TIERS = frozenset({SubscriptionTier.RESEARCH, SubscriptionTier.TEAMS})
UNLIMITED_TIERS = frozenset({SubscriptionTier.BASIC, SubscriptionTier.RESEARCH, SubscriptionTier.TEAMS})


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a send check; ``reason`` is the error type to raise when denied."""
    allowed: bool
    reason: Optional[Type[AppError]] = None

    def raise_if_denied(self) -> None:
        if not self.allowed and self.reason is not None:
            raise self.reason()


ALLOWED = PolicyDecision(allowed=True)


def can_access_category(tier: Optional[SubscriptionTier], category: ChatCategory) -> bool:
    """Research mode needs a research or teams tier; guests count as free."""
    if ChatCategory(category) != ChatCategory.RESEARCH:
        return True
    return tier is not None and SubscriptionTier(tier) in RESEARCH_TIERS


def reachable_categories(tier: Optional[SubscriptionTier]) -> list[ChatCategory]:
    return [c for c in ChatCategory if can_access_category(tier, c)]


def remaining_messages(tier: SubscriptionTier, message_count: int) -> Optional[int]:
    """Messages left for a free-tier user; None means unlimited."""
    if SubscriptionTier(tier) in UNLIMITED_TIERS:
        return None
    return max(settings.free_message_limit - message_count, 0)


def evaluate_send(
    authenticated: bool,
    tier: Optional[SubscriptionTier],
    message_count: int,
    category: ChatCategory,
    guest_message_count: int = 0,
) -> PolicyDecision:
    """
    Decide whether a new user message may be sent.

    Rules, in order:
      1. research category requires tier research/teams
      2. guests get GUEST_MESSAGE_LIMIT user messages per chat
      3. free tier gets FREE_MESSAGE_LIMIT messages in total
      4. basic/research/teams are unlimited
    """
    if not can_access_category(tier if authenticated else SubscriptionTier.FREE, category):
        return PolicyDecision(False, TierInsufficient)

    if not authenticated:
        if guest_message_count >= settings.guest_message_limit:
            return PolicyDecision(False, GuestLimitReached)
        return ALLOWED

    if tier == SubscriptionTier.FREE and message_count >= settings.free_message_limit:
        return PolicyDecision(False, QuotaExceeded)
    return ALLOWED
