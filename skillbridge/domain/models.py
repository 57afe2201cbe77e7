"""Core domain models for the marketplace.

This module defines the data structures used throughout the application:
- Profile: a member's account, membership tier and earnings counters
- JobCategory / Job: work offered on the marketplace
- Submission: a unit of user-provided work awaiting admin review
- Transaction: payment bookkeeping (membership charges, earnings)
- AuthSession: an issued access/refresh token pair

Repositories convert ORM rows into these models; services and the API only
ever see domain models.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MembershipTier(str, Enum):
    """Membership levels, lowest to highest."""

    NONE = "none"
    REGULAR = "regular"
    PRO = "pro"
    VIP = "vip"


class MembershipStatus(str, Enum):
    """Lifecycle of a paid membership."""

    INACTIVE = "inactive"
    PENDING_PAYMENT = "pending_payment"
    ACTIVE = "active"
    EXPIRED = "expired"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransactionType(str, Enum):
    SUBSCRIPTION = "subscription"
    EARNING = "earning"
    PAYOUT = "payout"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class _TimestampedModel(BaseModel):
    """Base class that normalizes every datetime field to UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def ensure_utc(cls, v):
        if isinstance(v, datetime):
            return _as_utc(v)
        return v


class User(_TimestampedModel):
    """Authentication identity. Password hashes never leave the persistence layer."""

    id: str
    email: str
    email_confirmed_at: Optional[datetime] = None
    created_at: datetime

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


class Profile(_TimestampedModel):
    """Member profile with membership and earnings counters.

    ``daily_tasks_used`` counts submissions made on ``last_task_reset_date``;
    a profile whose reset date is in the past has effectively used zero.
    """

    id: str = Field(..., description="Same identifier as the owning user")
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    membership_tier: MembershipTier = MembershipTier.NONE
    membership_status: MembershipStatus = MembershipStatus.INACTIVE
    membership_expires_at: Optional[datetime] = None
    daily_tasks_used: int = Field(0, ge=0)
    last_task_reset_date: date
    total_earnings: float = 0.0
    pending_earnings: float = 0.0
    approved_earnings: float = 0.0
    tasks_completed: int = Field(0, ge=0)
    rating: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"json_schema_extra": {"example": {
        "id": "4f1c2a9e-0b7d-4f43-9a43-0d6f3c2f5b11",
        "email": "worker@example.com",
        "full_name": "Ada Worker",
        "membership_tier": "pro",
        "membership_status": "pending_payment",
        "daily_tasks_used": 2,
        "last_task_reset_date": "2026-10-18",
        "pending_earnings": 12.5,
    }}}

    def tasks_used_on(self, today: date) -> int:
        """Submissions counted against the cap for ``today``."""
        if self.last_task_reset_date < today:
            return 0
        return self.daily_tasks_used


class JobCategory(BaseModel):
    id: str
    name: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Category name cannot be empty")
        return stripped


class Job(_TimestampedModel):
    """A unit of paid work, gated by ``required_tier``."""

    id: str
    title: str
    description: str
    instructions: str = ""
    payment_amount: float = Field(..., ge=0)
    difficulty: Difficulty = Difficulty.EASY
    required_tier: MembershipTier = MembershipTier.REGULAR
    estimated_time: Optional[str] = None
    deadline: Optional[datetime] = None
    submission_format: Optional[str] = None
    max_submissions: Optional[int] = Field(None, ge=1)
    current_submissions: int = Field(0, ge=0)
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    job_file_url: Optional[str] = None
    job_file_name: Optional[str] = None
    job_file_type: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @field_validator("title", "description")
    @classmethod
    def strip_required_text(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @property
    def is_full(self) -> bool:
        return self.max_submissions is not None and self.current_submissions >= self.max_submissions


class Submission(_TimestampedModel):
    """Work submitted by a member for a job.

    ``job_title``, ``category_name``, ``user_email`` and ``user_name`` are
    denormalized read fields filled in by repository joins.
    """

    id: str
    job_id: str
    user_id: str
    submission_content: str
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    admin_feedback: Optional[str] = None
    payment_amount: float = 0.0
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    job_title: Optional[str] = None
    category_name: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None

    @property
    def display_file_name(self) -> Optional[str]:
        if not self.file_url:
            return None
        return self.file_name or "Submitted File"


class Transaction(_TimestampedModel):
    """Payment bookkeeping row. Charges are recorded as negative amounts."""

    id: str
    user_id: str
    type: TransactionType
    amount: float
    status: TransactionStatus = TransactionStatus.PENDING
    description: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: datetime


class AuthSession(_TimestampedModel):
    """An issued token pair.

    Tokens are only present right after issuance; stored rows keep hashes.
    ``id`` is the digest of the access token.
    """

    id: Optional[str] = None
    user_id: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: datetime
    refresh_expires_at: datetime
    created_at: datetime
    revoked_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    @property
    def expires_in(self) -> int:
        """Seconds from creation until access expiry."""
        return int((self.expires_at - self.created_at).total_seconds())


class VerificationToken(_TimestampedModel):
    """Single-use email verification token (stored as a digest)."""

    token_hash: str
    user_id: str
    type: str = "signup"
    expires_at: datetime
    consumed_at: Optional[datetime] = None
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None
