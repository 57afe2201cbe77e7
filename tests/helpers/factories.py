"""Seed helpers that write straight through the repositories."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from skillbridge.domain.models import (
    Difficulty,
    Job,
    JobCategory,
    MembershipStatus,
    MembershipTier,
    Profile,
    Role,
)
from skillbridge.persistence import (
    CategoryRepository,
    JobRepository,
    ProfileRepository,
    RoleRepository,
    UserRepository,
    get_session,
)
from skillbridge.utils import hash_password

FROZEN_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
TEST_PASSWORD = "Secret123"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def create_member(
    email: Optional[str] = None,
    tier: MembershipTier = MembershipTier.REGULAR,
    full_name: str = "Ada Worker",
    password: str = TEST_PASSWORD,
    confirmed: bool = True,
    admin: bool = False,
    now: datetime = FROZEN_NOW,
    **profile_fields,
) -> Profile:
    """Insert a user with its profile and roles."""
    user_id = str(uuid4())
    email = email or f"member-{user_id[:8]}@example.com"
    profile_fields.setdefault(
        "membership_status",
        MembershipStatus.INACTIVE if tier == MembershipTier.NONE else MembershipStatus.ACTIVE,
    )
    profile_fields.setdefault("last_task_reset_date", now.date())

    with get_session() as session:
        users = UserRepository(session)
        users.create(user_id, email, hash_password(password, iterations=1000), now)
        if confirmed:
            users.mark_confirmed(user_id, now)

        profile = ProfileRepository(session).create(
            Profile(
                id=user_id,
                email=email,
                full_name=full_name,
                membership_tier=tier,
                created_at=now,
                updated_at=now,
                **profile_fields,
            )
        )

        roles = RoleRepository(session)
        roles.grant(user_id, Role.USER)
        if admin:
            roles.grant(user_id, Role.ADMIN)

    return profile


def create_category(name: str = "Design") -> JobCategory:
    with get_session() as session:
        return CategoryRepository(session).create(JobCategory(id=str(uuid4()), name=name))


def create_job(
    title: str = "Logo design",
    payment_amount: float = 10.0,
    required_tier: MembershipTier = MembershipTier.REGULAR,
    now: datetime = FROZEN_NOW,
    **fields,
) -> Job:
    fields.setdefault("description", "Design a logo for a bakery")
    fields.setdefault("difficulty", Difficulty.EASY)
    with get_session() as session:
        return JobRepository(session).create(
            Job(
                id=str(uuid4()),
                title=title,
                payment_amount=payment_amount,
                required_tier=required_tier,
                created_at=now,
                updated_at=now,
                **fields,
            )
        )


def get_profile(user_id: str) -> Profile:
    with get_session() as session:
        return ProfileRepository(session).get(user_id)
