"""Membership plan catalogue."""

from typing import List, Optional

from pydantic import BaseModel

from skillbridge.config.models import MembershipConfig
from skillbridge.domain.models import MembershipTier

from .rules import tier_rank


class PlanOffer(BaseModel):
    """A plan as presented to members at checkout."""

    key: str
    name: str
    price: float
    currency: str
    tier: MembershipTier
    duration_months: int
    daily_limit: Optional[int]


def list_plans(config: MembershipConfig, currency: str = "USD") -> List[PlanOffer]:
    """Configured plans, cheapest tier first. A daily_limit of None means unlimited."""
    offers = [
        PlanOffer(
            key=key,
            name=plan.name,
            price=plan.price,
            currency=currency,
            tier=plan.tier,
            duration_months=plan.duration_months,
            daily_limit=config.daily_limits.get(plan.tier),
        )
        for key, plan in config.plans.items()
    ]
    return sorted(offers, key=lambda offer: (tier_rank(offer.tier), offer.price))
