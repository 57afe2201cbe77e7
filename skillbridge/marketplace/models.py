"""Read and write models for marketplace views."""

from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

from skillbridge.domain.models import (
    Difficulty,
    Job,
    MembershipTier,
    Submission,
    SubmissionStatus,
)


class JobListing(BaseModel):
    """A job as shown on the board, flagged with whether the viewer's tier can open it."""

    job: Job
    is_accessible: bool


class JobDetail(BaseModel):
    job: Job
    is_accessible: bool
    has_submitted: bool
    can_submit: bool
    blocked_reason: Optional[str] = None
    tasks_remaining: Optional[int] = Field(None, description="None means unlimited")
    submission: Optional[Submission] = None
    job_file_kind: Optional[str] = None


class SubmissionStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0

    @classmethod
    def from_submissions(cls, submissions: Iterable[Submission]) -> "SubmissionStats":
        stats = cls()
        for submission in submissions:
            stats.total += 1
            if submission.status == SubmissionStatus.PENDING:
                stats.pending += 1
            elif submission.status == SubmissionStatus.APPROVED:
                stats.approved += 1
            elif submission.status == SubmissionStatus.REJECTED:
                stats.rejected += 1
        return stats


class SubmissionHistory(BaseModel):
    """A member's submissions (filtered) plus stats over all of them."""

    submissions: List[Submission]
    stats: SubmissionStats


class DashboardStats(BaseModel):
    total_jobs: int
    active_jobs: int
    pending_reviews: int
    total_submissions: int


class JobDraft(BaseModel):
    """Admin job form.

    Empty optional strings are stored as null, as the form sends them.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    instructions: str = ""
    payment_amount: float = Field(..., ge=0)
    difficulty: Difficulty = Difficulty.EASY
    required_tier: MembershipTier = MembershipTier.REGULAR
    estimated_time: Optional[str] = None
    deadline: Optional[datetime] = None
    submission_format: Optional[str] = None
    max_submissions: Optional[int] = Field(None, ge=1)
    category_id: Optional[str] = None
    is_active: bool = True

    @field_validator("title", "description")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("estimated_time", "submission_format", "category_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class ReviewRequest(BaseModel):
    status: SubmissionStatus
    feedback: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def must_be_decision(cls, v: SubmissionStatus) -> SubmissionStatus:
        if v == SubmissionStatus.PENDING:
            raise ValueError("Review status must be 'approved' or 'rejected'")
        return v

    @field_validator("feedback")
    @classmethod
    def blank_feedback_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()
