"""Domain models for the SkillBridge marketplace."""

from .models import (
    AuthSession,
    Difficulty,
    Job,
    JobCategory,
    MembershipStatus,
    MembershipTier,
    Profile,
    Role,
    Submission,
    SubmissionStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    VerificationToken,
)

__all__ = [
    "AuthSession",
    "Difficulty",
    "Job",
    "JobCategory",
    "MembershipStatus",
    "MembershipTier",
    "Profile",
    "Role",
    "Submission",
    "SubmissionStatus",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
    "VerificationToken",
]
