"""Membership tiers, access rules and plans."""

from .plans import PlanOffer, list_plans
from .rules import (
    BLOCK_MESSAGES,
    TIER_ORDER,
    MembershipPolicy,
    SubmitBlockReason,
    SubmitEligibility,
    can_access_job,
    tier_rank,
)

__all__ = [
    "TIER_ORDER",
    "tier_rank",
    "can_access_job",
    "MembershipPolicy",
    "SubmitBlockReason",
    "SubmitEligibility",
    "BLOCK_MESSAGES",
    "PlanOffer",
    "list_plans",
]
