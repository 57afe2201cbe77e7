"""Tests for tier rules, daily caps and the plan catalogue."""

from datetime import date, timedelta

import pytest

from skillbridge.config.models import MembershipConfig, PlanConfig
from skillbridge.domain.models import Job, MembershipTier, Profile
from skillbridge.membership import (
    BLOCK_MESSAGES,
    MembershipPolicy,
    SubmitBlockReason,
    can_access_job,
    list_plans,
    tier_rank,
)
from tests.helpers import FROZEN_NOW

TODAY = FROZEN_NOW.date()


def make_profile(tier=MembershipTier.REGULAR, used=0, reset_date: date = TODAY) -> Profile:
    return Profile(
        id="u1",
        email="ada@example.com",
        membership_tier=tier,
        daily_tasks_used=used,
        last_task_reset_date=reset_date,
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
    )


def make_job(required_tier=MembershipTier.REGULAR, **fields) -> Job:
    return Job(
        id="j1",
        title="Logo design",
        description="Design a logo",
        payment_amount=10,
        required_tier=required_tier,
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
        **fields,
    )


class TestTierRank:
    def test_hierarchy(self):
        assert tier_rank(MembershipTier.NONE) < tier_rank("regular") < tier_rank("pro") < tier_rank("vip")

    def test_unknown_ranks_as_none(self):
        assert tier_rank("platinum") == 0
        assert tier_rank(None) == 0

    @pytest.mark.parametrize(
        "user_tier,required_tier,expected",
        [
            ("vip", "regular", True),
            ("pro", "pro", True),
            ("regular", "pro", False),
            ("none", "regular", False),
            (None, "none", True),
        ],
    )
    def test_can_access_job(self, user_tier, required_tier, expected):
        assert can_access_job(user_tier, required_tier) is expected


class TestTasksRemaining:
    def test_counts_down_from_tier_limit(self):
        policy = MembershipPolicy()

        assert policy.tasks_remaining(make_profile(MembershipTier.REGULAR, used=1), TODAY) == 3
        assert policy.tasks_remaining(make_profile(MembershipTier.PRO, used=6), TODAY) == 0

    def test_vip_is_unlimited(self):
        assert MembershipPolicy().tasks_remaining(make_profile(MembershipTier.VIP, used=50), TODAY) is None

    def test_stale_counter_counts_as_zero(self):
        """A counter from yesterday does not eat into today's allowance."""
        profile = make_profile(MembershipTier.REGULAR, used=4, reset_date=TODAY - timedelta(days=1))

        assert MembershipPolicy().tasks_remaining(profile, TODAY) == 4

    def test_custom_limits(self):
        policy = MembershipPolicy(MembershipConfig(daily_limits={"regular": 1}))

        assert policy.daily_limit("regular") == 1
        assert policy.daily_limit("pro") == 6
        assert policy.daily_limit("gold") == 0


class TestCheckSubmit:
    """Block reasons are reported in a fixed precedence order."""

    def test_allowed(self):
        eligibility = MembershipPolicy().check_submit(make_profile(), make_job(), False, TODAY)

        assert eligibility.allowed is True
        assert eligibility.reason is None
        assert eligibility.message is None

    def test_no_membership_comes_first(self):
        profile = make_profile(MembershipTier.NONE)
        job = make_job(is_active=False)

        eligibility = MembershipPolicy().check_submit(profile, job, True, TODAY)

        assert eligibility.reason == SubmitBlockReason.NO_MEMBERSHIP
        assert eligibility.message == BLOCK_MESSAGES[SubmitBlockReason.NO_MEMBERSHIP]

    def test_already_submitted_before_daily_limit(self):
        profile = make_profile(used=4)

        eligibility = MembershipPolicy().check_submit(profile, make_job(), True, TODAY)

        assert eligibility.reason == SubmitBlockReason.ALREADY_SUBMITTED

    def test_daily_limit_before_job_state(self):
        profile = make_profile(used=4)

        eligibility = MembershipPolicy().check_submit(profile, make_job(is_active=False), False, TODAY)

        assert eligibility.reason == SubmitBlockReason.DAILY_LIMIT_REACHED

    def test_inactive_job(self):
        eligibility = MembershipPolicy().check_submit(
            make_profile(), make_job(is_active=False), False, TODAY
        )

        assert eligibility.reason == SubmitBlockReason.JOB_INACTIVE

    def test_full_job(self):
        job = make_job(max_submissions=2, current_submissions=2)

        eligibility = MembershipPolicy().check_submit(make_profile(), job, False, TODAY)

        assert eligibility.reason == SubmitBlockReason.JOB_FULL

    def test_tier_too_low(self):
        eligibility = MembershipPolicy().check_submit(
            make_profile(MembershipTier.REGULAR), make_job(MembershipTier.VIP), False, TODAY
        )

        assert eligibility.reason == SubmitBlockReason.TIER_TOO_LOW
        assert MembershipPolicy().can_submit(
            make_profile(MembershipTier.REGULAR), make_job(MembershipTier.VIP), False, TODAY
        ) is False

    def test_vip_never_hits_daily_limit(self):
        profile = make_profile(MembershipTier.VIP, used=1000)

        assert MembershipPolicy().can_submit(profile, make_job(), False, TODAY) is True


class TestPlans:
    def test_default_catalogue_order(self):
        plans = list_plans(MembershipConfig())

        assert [p.key for p in plans] == ["regular", "pro", "vip"]
        assert [p.price for p in plans] == [15, 25, 49]
        assert plans[0].daily_limit == 4
        assert plans[-1].daily_limit is None
        assert plans[0].currency == "USD"

    def test_sorted_by_tier_then_price(self):
        config = MembershipConfig(
            plans={
                "vip": PlanConfig(name="VIP", price=49, tier="vip"),
                "pro-annual": PlanConfig(name="Pro Annual", price=250, tier="pro", duration_months=12),
                "Pro": PlanConfig(name="Pro", price=25, tier="pro"),
            }
        )

        plans = list_plans(config, currency="EUR")

        assert [p.key for p in plans] == ["pro", "pro-annual", "vip"]
        assert all(p.currency == "EUR" for p in plans)
