"""Tier hierarchy, job access and daily submission caps."""

from datetime import date
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel

from skillbridge.config.models import MembershipConfig
from skillbridge.domain.models import Job, MembershipTier, Profile

TIER_ORDER = [
    MembershipTier.NONE,
    MembershipTier.REGULAR,
    MembershipTier.PRO,
    MembershipTier.VIP,
]


def tier_rank(tier: Union[MembershipTier, str, None]) -> int:
    """Position of a tier in the hierarchy; unknown values rank as 'none'.

    Example:
        >>> tier_rank("pro") > tier_rank("regular")
        True
    """
    try:
        return TIER_ORDER.index(MembershipTier(tier))
    except ValueError:
        return 0


def can_access_job(
    user_tier: Union[MembershipTier, str, None],
    required_tier: Union[MembershipTier, str, None],
) -> bool:
    """A member can open jobs at or below their own tier."""
    return tier_rank(user_tier) >= tier_rank(required_tier)


class SubmitBlockReason(str, Enum):
    """Why a member cannot submit to a job right now."""

    NO_MEMBERSHIP = "no_membership"
    ALREADY_SUBMITTED = "already_submitted"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
    JOB_INACTIVE = "job_inactive"
    JOB_FULL = "job_full"
    TIER_TOO_LOW = "tier_too_low"


BLOCK_MESSAGES: Dict[SubmitBlockReason, str] = {
    SubmitBlockReason.NO_MEMBERSHIP: "A membership is required to submit work.",
    SubmitBlockReason.ALREADY_SUBMITTED: "You have already submitted work for this job.",
    SubmitBlockReason.DAILY_LIMIT_REACHED: "You have reached your daily submission limit.",
    SubmitBlockReason.JOB_INACTIVE: "This job is no longer accepting submissions.",
    SubmitBlockReason.JOB_FULL: "This job has reached its maximum number of submissions.",
    SubmitBlockReason.TIER_TOO_LOW: "This job requires a higher membership tier.",
}


class SubmitEligibility(BaseModel):
    allowed: bool
    reason: Optional[SubmitBlockReason] = None

    @property
    def message(self) -> Optional[str]:
        return BLOCK_MESSAGES.get(self.reason) if self.reason else None


class MembershipPolicy:
    """Applies the configured daily caps to profiles and jobs.

    A cap of ``None`` means unlimited. Counters from a previous UTC day are
    treated as zero.
    """

    def __init__(self, config: Optional[MembershipConfig] = None):
        self.config = config or MembershipConfig()

    def daily_limit(self, tier: Union[MembershipTier, str, None]) -> Optional[int]:
        try:
            return self.config.daily_limits.get(MembershipTier(tier), 0)
        except ValueError:
            return 0

    def tasks_remaining(self, profile: Profile, today: date) -> Optional[int]:
        """Submissions left today, or None when unlimited."""
        limit = self.daily_limit(profile.membership_tier)
        if limit is None:
            return None
        return max(limit - profile.tasks_used_on(today), 0)

    def check_submit(
        self, profile: Profile, job: Job, has_submitted: bool, today: date
    ) -> SubmitEligibility:
        """Decide whether ``profile`` may submit work to ``job`` today."""
        if profile.membership_tier == MembershipTier.NONE:
            return SubmitEligibility(allowed=False, reason=SubmitBlockReason.NO_MEMBERSHIP)
        if has_submitted:
            return SubmitEligibility(allowed=False, reason=SubmitBlockReason.ALREADY_SUBMITTED)

        remaining = self.tasks_remaining(profile, today)
        if remaining is not None and remaining <= 0:
            return SubmitEligibility(allowed=False, reason=SubmitBlockReason.DAILY_LIMIT_REACHED)

        if not job.is_active:
            return SubmitEligibility(allowed=False, reason=SubmitBlockReason.JOB_INACTIVE)
        if job.is_full:
            return SubmitEligibility(allowed=False, reason=SubmitBlockReason.JOB_FULL)
        if not can_access_job(profile.membership_tier, job.required_tier):
            return SubmitEligibility(allowed=False, reason=SubmitBlockReason.TIER_TOO_LOW)

        return SubmitEligibility(allowed=True)

    def can_submit(self, profile: Profile, job: Job, has_submitted: bool, today: date) -> bool:
        return self.check_submit(profile, job, has_submitted, today).allowed
