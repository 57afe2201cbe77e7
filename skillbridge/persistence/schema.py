"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for the marketplace tables and
provides conversion methods between ORM models and domain models.
Timestamps are stored as ISO 8601 strings with a 'Z' suffix, which sort
lexicographically in time order.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from skillbridge.domain.models import (
    AuthSession,
    Job,
    JobCategory,
    Profile,
    Submission,
    Transaction,
    User,
    VerificationToken,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


class UserModel(Base):
    """ORM model for users table (authentication identities)."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(320), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    email_confirmed_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)

    def to_domain(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            email_confirmed_at=_parse_datetime(self.email_confirmed_at),
            created_at=_parse_datetime(self.created_at),
        )


class ProfileModel(Base):
    """ORM model for profiles table.

    One row per user, keyed by the user id.
    """

    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(320), nullable=False)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)

    membership_tier = Column(String(20), nullable=False, default="none")
    membership_status = Column(String(20), nullable=False, default="inactive")
    membership_expires_at = Column(String(50), nullable=True)

    daily_tasks_used = Column(Integer, nullable=False, default=0)
    last_task_reset_date = Column(String(10), nullable=False)

    total_earnings = Column(Float, nullable=False, default=0.0)
    pending_earnings = Column(Float, nullable=False, default=0.0)
    approved_earnings = Column(Float, nullable=False, default=0.0)
    tasks_completed = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=True)

    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_profiles_membership_expiry", "membership_expires_at"),
        Index("idx_profiles_reset_date", "last_task_reset_date"),
    )

    def to_domain(self) -> Profile:
        return Profile(
            id=self.id,
            email=self.email,
            full_name=self.full_name,
            avatar_url=self.avatar_url,
            membership_tier=self.membership_tier,
            membership_status=self.membership_status,
            membership_expires_at=_parse_datetime(self.membership_expires_at),
            daily_tasks_used=self.daily_tasks_used,
            last_task_reset_date=date.fromisoformat(self.last_task_reset_date),
            total_earnings=self.total_earnings,
            pending_earnings=self.pending_earnings,
            approved_earnings=self.approved_earnings,
            tasks_completed=self.tasks_completed,
            rating=self.rating,
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileModel":
        model = cls(id=profile.id, created_at=_format_datetime(profile.created_at))
        model.apply(profile)
        return model

    def apply(self, profile: Profile) -> None:
        """Copy mutable fields from a domain profile onto this row."""
        self.email = profile.email
        self.full_name = profile.full_name
        self.avatar_url = profile.avatar_url
        self.membership_tier = profile.membership_tier.value
        self.membership_status = profile.membership_status.value
        self.membership_expires_at = _format_datetime(profile.membership_expires_at)
        self.daily_tasks_used = profile.daily_tasks_used
        self.last_task_reset_date = profile.last_task_reset_date.isoformat()
        self.total_earnings = profile.total_earnings
        self.pending_earnings = profile.pending_earnings
        self.approved_earnings = profile.approved_earnings
        self.tasks_completed = profile.tasks_completed
        self.rating = profile.rating
        self.updated_at = _format_datetime(profile.updated_at)


class UserRoleModel(Base):
    """ORM model for user_roles table."""

    __tablename__ = "user_roles"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(20), primary_key=True)


class JobCategoryModel(Base):
    """ORM model for job_categories table."""

    __tablename__ = "job_categories"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False, unique=True)

    def to_domain(self) -> JobCategory:
        return JobCategory(id=self.id, name=self.name)


class JobModel(Base):
    """ORM model for jobs table."""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False, default="")
    payment_amount = Column(Float, nullable=False)
    difficulty = Column(String(10), nullable=False, default="easy")
    required_tier = Column(String(20), nullable=False, default="regular")
    estimated_time = Column(String(100), nullable=True)
    deadline = Column(String(50), nullable=True)
    submission_format = Column(Text, nullable=True)
    max_submissions = Column(Integer, nullable=True)
    current_submissions = Column(Integer, nullable=False, default=0)
    category_id = Column(
        String(36), ForeignKey("job_categories.id", ondelete="SET NULL"), nullable=True
    )

    job_file_url = Column(Text, nullable=True)
    job_file_name = Column(String(255), nullable=True)
    job_file_type = Column(String(100), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_jobs_active_created", "is_active", "created_at"),
        Index("idx_jobs_category", "category_id"),
    )

    def to_domain(self, category_name: Optional[str] = None) -> Job:
        return Job(
            id=self.id,
            title=self.title,
            description=self.description,
            instructions=self.instructions or "",
            payment_amount=self.payment_amount,
            difficulty=self.difficulty,
            required_tier=self.required_tier,
            estimated_time=self.estimated_time,
            deadline=_parse_datetime(self.deadline),
            submission_format=self.submission_format,
            max_submissions=self.max_submissions,
            current_submissions=self.current_submissions,
            category_id=self.category_id,
            category_name=category_name,
            job_file_url=self.job_file_url,
            job_file_name=self.job_file_name,
            job_file_type=self.job_file_type,
            is_active=self.is_active,
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, job: Job) -> "JobModel":
        model = cls(
            id=job.id,
            current_submissions=job.current_submissions,
            created_at=_format_datetime(job.created_at),
        )
        model.apply(job)
        return model

    def apply(self, job: Job) -> None:
        """Copy admin-editable fields from a domain job onto this row."""
        self.title = job.title
        self.description = job.description
        self.instructions = job.instructions
        self.payment_amount = job.payment_amount
        self.difficulty = job.difficulty.value
        self.required_tier = job.required_tier.value
        self.estimated_time = job.estimated_time
        self.deadline = _format_datetime(job.deadline)
        self.submission_format = job.submission_format
        self.max_submissions = job.max_submissions
        self.category_id = job.category_id
        self.job_file_url = job.job_file_url
        self.job_file_name = job.job_file_name
        self.job_file_type = job.job_file_type
        self.is_active = job.is_active
        self.updated_at = _format_datetime(job.updated_at)


class SubmissionModel(Base):
    """ORM model for job_submissions table.

    A user may submit to a given job at most once.
    """

    __tablename__ = "job_submissions"

    id = Column(String(36), primary_key=True)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    submission_content = Column(Text, nullable=False)

    file_url = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=True)
    file_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, default="pending")
    admin_feedback = Column(Text, nullable=True)
    payment_amount = Column(Float, nullable=False, default=0.0)

    created_at = Column(String(50), nullable=False)
    reviewed_at = Column(String(50), nullable=True)
    reviewed_by = Column(String(36), nullable=True)

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_submission_job_user"),
        Index("idx_submissions_user_created", "user_id", "created_at"),
        Index("idx_submissions_status", "status"),
    )

    def to_domain(
        self,
        job_title: Optional[str] = None,
        category_name: Optional[str] = None,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> Submission:
        return Submission(
            id=self.id,
            job_id=self.job_id,
            user_id=self.user_id,
            submission_content=self.submission_content,
            file_url=self.file_url,
            file_name=self.file_name,
            file_type=self.file_type,
            file_size=self.file_size,
            status=self.status,
            admin_feedback=self.admin_feedback,
            payment_amount=self.payment_amount,
            created_at=_parse_datetime(self.created_at),
            reviewed_at=_parse_datetime(self.reviewed_at),
            reviewed_by=self.reviewed_by,
            job_title=job_title,
            category_name=category_name,
            user_email=user_email,
            user_name=user_name,
        )

    @classmethod
    def from_domain(cls, submission: Submission) -> "SubmissionModel":
        return cls(
            id=submission.id,
            job_id=submission.job_id,
            user_id=submission.user_id,
            submission_content=submission.submission_content,
            file_url=submission.file_url,
            file_name=submission.file_name,
            file_type=submission.file_type,
            file_size=submission.file_size,
            status=submission.status.value,
            admin_feedback=submission.admin_feedback,
            payment_amount=submission.payment_amount,
            created_at=_format_datetime(submission.created_at),
            reviewed_at=_format_datetime(submission.reviewed_at),
            reviewed_by=submission.reviewed_by,
        )


class TransactionModel(Base):
    """ORM model for transactions table."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    description = Column(Text, nullable=True)
    reference_id = Column(String(100), nullable=True)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_transactions_user_created", "user_id", "created_at"),)

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            user_id=self.user_id,
            type=self.type,
            amount=self.amount,
            status=self.status,
            description=self.description,
            reference_id=self.reference_id,
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionModel":
        return cls(
            id=transaction.id,
            user_id=transaction.user_id,
            type=transaction.type.value,
            amount=transaction.amount,
            status=transaction.status.value,
            description=transaction.description,
            reference_id=transaction.reference_id,
            created_at=_format_datetime(transaction.created_at),
        )


class AuthSessionModel(Base):
    """ORM model for auth_sessions table. Tokens are stored as SHA256 digests."""

    __tablename__ = "auth_sessions"

    access_token_hash = Column(String(64), primary_key=True)
    refresh_token_hash = Column(String(64), nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(String(50), nullable=False)
    refresh_expires_at = Column(String(50), nullable=False)
    created_at = Column(String(50), nullable=False)
    revoked_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_auth_sessions_expires", "expires_at"),)

    def to_domain(self) -> AuthSession:
        return AuthSession(
            id=self.access_token_hash,
            user_id=self.user_id,
            expires_at=_parse_datetime(self.expires_at),
            refresh_expires_at=_parse_datetime(self.refresh_expires_at),
            created_at=_parse_datetime(self.created_at),
            revoked_at=_parse_datetime(self.revoked_at),
        )


class VerificationTokenModel(Base):
    """ORM model for verification_tokens table."""

    __tablename__ = "verification_tokens"

    token_hash = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False, default="signup")
    expires_at = Column(String(50), nullable=False)
    consumed_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)

    def to_domain(self) -> VerificationToken:
        return VerificationToken(
            token_hash=self.token_hash,
            user_id=self.user_id,
            type=self.type,
            expires_at=_parse_datetime(self.expires_at),
            consumed_at=_parse_datetime(self.consumed_at),
            created_at=_parse_datetime(self.created_at),
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 string for database storage.

    Naive datetimes are treated as UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to an aware UTC datetime."""
    if dt_str is None or dt_str == "":
        return None

    dt_str = dt_str.rstrip("Z")

    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
