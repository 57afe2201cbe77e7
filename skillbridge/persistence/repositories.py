"""Data access layer (repositories) for persistence operations.

Repositories encapsulate database operations for users, profiles, roles,
categories, jobs, submissions, transactions and auth tokens. They return
domain models rather than ORM models and wrap SQLAlchemy errors in
PersistenceError.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Set

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from skillbridge.domain.models import (
    AuthSession,
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
    User,
    VerificationToken,
)

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    AuthSessionModel,
    JobCategoryModel,
    JobModel,
    ProfileModel,
    SubmissionModel,
    TransactionModel,
    UserModel,
    UserRoleModel,
    VerificationTokenModel,
    _format_datetime,
)

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for authentication identities."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[User]:
        try:
            user_model = self.session.get(UserModel, user_id)
            return user_model.to_domain() if user_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by (lowercased) email address."""
        credentials = self.get_credentials(email)
        return credentials[0] if credentials else None

    def get_credentials(self, email: str) -> Optional[tuple[User, str]]:
        """Retrieve a user together with the stored password hash.

        Returns:
            (User, password_hash) if the email is registered, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(UserModel).where(UserModel.email == email.strip().lower())
            user_model = self.session.execute(stmt).scalar_one_or_none()
            if user_model is None:
                return None
            return user_model.to_domain(), user_model.password_hash
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user by email: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def create(self, user_id: str, email: str, password_hash: str, created_at: datetime) -> User:
        """Insert a new user.

        Raises:
            DataIntegrityError: If the email is already registered
            PersistenceError: If database error occurs
        """
        try:
            user_model = UserModel(
                id=user_id,
                email=email.strip().lower(),
                password_hash=password_hash,
                created_at=_format_datetime(created_at),
            )
            self.session.add(user_model)
            self.session.flush()
            return user_model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Email already registered: {email}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating user: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create user: {e}") from e

    def mark_confirmed(self, user_id: str, confirmed_at: datetime) -> User:
        """Set email_confirmed_at if not already set.

        Raises:
            RecordNotFoundError: If user doesn't exist
        """
        try:
            user_model = self.session.get(UserModel, user_id)
            if user_model is None:
                raise RecordNotFoundError(f"User {user_id} not found")
            if user_model.email_confirmed_at is None:
                user_model.email_confirmed_at = _format_datetime(confirmed_at)
                self.session.flush()
            return user_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error confirming user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to confirm user: {e}") from e


class ProfileRepository:
    """Repository for member profiles, membership state and counters."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[Profile]:
        try:
            profile_model = self.session.get(ProfileModel, user_id)
            return profile_model.to_domain() if profile_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving profile {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve profile: {e}") from e

    def create(self, profile: Profile) -> Profile:
        try:
            profile_model = ProfileModel.from_domain(profile)
            self.session.add(profile_model)
            self.session.flush()
            return profile_model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Profile already exists for user {profile.id}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating profile {profile.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create profile: {e}") from e

    def save(self, profile: Profile) -> Profile:
        """Persist every mutable field of an existing profile.

        Raises:
            RecordNotFoundError: If profile doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            profile_model = self.session.get(ProfileModel, profile.id)
            if profile_model is None:
                raise RecordNotFoundError(f"Profile {profile.id} not found")
            profile_model.apply(profile)
            self.session.flush()
            return profile_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error saving profile {profile.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save profile: {e}") from e

    def reset_daily_counters(self, today: date, now: datetime) -> int:
        """Zero daily_tasks_used on every profile last reset before ``today``.

        Returns:
            Number of profiles reset
        """
        try:
            stmt = (
                update(ProfileModel)
                .where(ProfileModel.last_task_reset_date < today.isoformat())
                .values(
                    daily_tasks_used=0,
                    last_task_reset_date=today.isoformat(),
                    updated_at=_format_datetime(now),
                )
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error resetting daily counters: {e}", exc_info=True)
            raise PersistenceError(f"Failed to reset daily counters: {e}") from e

    def expire_memberships(self, now: datetime) -> int:
        """Drop paid memberships whose expiry has passed to the 'none' tier.

        Returns:
            Number of memberships expired
        """
        try:
            stmt = (
                update(ProfileModel)
                .where(
                    ProfileModel.membership_expires_at.is_not(None),
                    ProfileModel.membership_expires_at <= _format_datetime(now),
                    ProfileModel.membership_tier != MembershipTier.NONE.value,
                )
                .values(
                    membership_tier=MembershipTier.NONE.value,
                    membership_status=MembershipStatus.EXPIRED.value,
                    updated_at=_format_datetime(now),
                )
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error expiring memberships: {e}", exc_info=True)
            raise PersistenceError(f"Failed to expire memberships: {e}") from e


class RoleRepository:
    """Repository for user role assignments."""

    def __init__(self, session: Session):
        self.session = session

    def get_roles(self, user_id: str) -> Set[Role]:
        try:
            stmt = select(UserRoleModel.role).where(UserRoleModel.user_id == user_id)
            return {Role(role) for role in self.session.execute(stmt).scalars().all()}
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving roles for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve roles: {e}") from e

    def has_role(self, user_id: str, role: Role) -> bool:
        return role in self.get_roles(user_id)

    def grant(self, user_id: str, role: Role) -> bool:
        """Assign a role. Returns False if the user already had it."""
        try:
            if self.session.get(UserRoleModel, (user_id, role.value)) is not None:
                return False
            self.session.add(UserRoleModel(user_id=user_id, role=role.value))
            self.session.flush()
            return True
        except IntegrityError as e:
            raise DataIntegrityError(f"Cannot grant role to unknown user {user_id}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error granting role to {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to grant role: {e}") from e


class CategoryRepository:
    """Repository for job categories."""

    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[JobCategory]:
        """All categories ordered by name."""
        try:
            stmt = select(JobCategoryModel).order_by(JobCategoryModel.name)
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving categories: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve categories: {e}") from e

    def get(self, category_id: str) -> Optional[JobCategory]:
        try:
            model = self.session.get(JobCategoryModel, category_id)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving category {category_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve category: {e}") from e

    def create(self, category: JobCategory) -> JobCategory:
        """Insert a category.

        Raises:
            DataIntegrityError: If a category with the same name exists
        """
        try:
            model = JobCategoryModel(id=category.id, name=category.name)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Category already exists: {category.name}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating category: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create category: {e}") from e


class JobRepository:
    """Repository for job-related database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _select_with_category(self):
        return select(JobModel, JobCategoryModel.name).outerjoin(
            JobCategoryModel, JobModel.category_id == JobCategoryModel.id
        )

    def get(self, job_id: str) -> Optional[Job]:
        """Retrieve a job by id, with its category name.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = self._select_with_category().where(JobModel.id == job_id)
            row = self.session.execute(stmt).one_or_none()
            if row is None:
                return None
            job_model, category_name = row
            return job_model.to_domain(category_name)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def get_all(self, active_only: bool = False) -> List[Job]:
        """List jobs newest first, optionally only active ones."""
        try:
            stmt = self._select_with_category()
            if active_only:
                stmt = stmt.where(JobModel.is_active.is_(True))
            stmt = stmt.order_by(JobModel.created_at.desc())
            return [
                job_model.to_domain(category_name)
                for job_model, category_name in self.session.execute(stmt).all()
            ]
        except SQLAlchemyError as e:
            logger.error(f"Error listing jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs: {e}") from e

    def create(self, job: Job) -> Job:
        try:
            job_model = JobModel.from_domain(job)
            self.session.add(job_model)
            self.session.flush()
            return self.get(job.id)
        except IntegrityError as e:
            logger.error(f"Integrity error creating job {job.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create job: {e}") from e

    def update(self, job: Job) -> Job:
        """Persist admin-editable fields of an existing job.

        Raises:
            RecordNotFoundError: If job doesn't exist
        """
        try:
            job_model = self.session.get(JobModel, job.id)
            if job_model is None:
                raise RecordNotFoundError(f"Job {job.id} not found")
            job_model.apply(job)
            self.session.flush()
            return self.get(job.id)
        except RecordNotFoundError:
            raise
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to update job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update job: {e}") from e

    def delete(self, job_id: str) -> None:
        """Delete a job and its submissions.

        Submissions are removed one by one through the ORM so each removal
        reaches the change feed.

        Raises:
            RecordNotFoundError: If job doesn't exist
        """
        try:
            job_model = self.session.get(JobModel, job_id)
            if job_model is None:
                raise RecordNotFoundError(f"Job {job_id} not found")
            stmt = select(SubmissionModel).where(SubmissionModel.job_id == job_id)
            for submission_model in self.session.scalars(stmt).all():
                self.session.delete(submission_model)
            self.session.flush()
            self.session.delete(job_model)
            self.session.flush()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error deleting job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete job: {e}") from e

    def set_active(self, job_id: str, is_active: bool, updated_at: datetime) -> Job:
        try:
            job_model = self.session.get(JobModel, job_id)
            if job_model is None:
                raise RecordNotFoundError(f"Job {job_id} not found")
            job_model.is_active = is_active
            job_model.updated_at = _format_datetime(updated_at)
            self.session.flush()
            return self.get(job_id)
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error toggling job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update job status: {e}") from e

    def increment_submissions(self, job_id: str) -> None:
        """Atomically bump current_submissions by one."""
        try:
            stmt = (
                update(JobModel)
                .where(JobModel.id == job_id)
                .values(current_submissions=JobModel.current_submissions + 1)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            if result.rowcount == 0:
                raise RecordNotFoundError(f"Job {job_id} not found")
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error incrementing submissions for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update submission count: {e}") from e

    def count(self, active_only: bool = False) -> int:
        try:
            stmt = select(func.count()).select_from(JobModel)
            if active_only:
                stmt = stmt.where(JobModel.is_active.is_(True))
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count jobs: {e}") from e


class SubmissionRepository:
    """Repository for job submissions and their review state."""

    def __init__(self, session: Session):
        self.session = session

    def _select_with_details(self):
        return (
            select(
                SubmissionModel,
                JobModel.title,
                JobCategoryModel.name,
                ProfileModel.email,
                ProfileModel.full_name,
            )
            .outerjoin(JobModel, SubmissionModel.job_id == JobModel.id)
            .outerjoin(JobCategoryModel, JobModel.category_id == JobCategoryModel.id)
            .outerjoin(ProfileModel, SubmissionModel.user_id == ProfileModel.id)
        )

    @staticmethod
    def _to_domain(row) -> Submission:
        submission_model, job_title, category_name, user_email, user_name = row
        return submission_model.to_domain(
            job_title=job_title,
            category_name=category_name,
            user_email=user_email,
            user_name=user_name,
        )

    def get(self, submission_id: str) -> Optional[Submission]:
        try:
            stmt = self._select_with_details().where(SubmissionModel.id == submission_id)
            row = self.session.execute(stmt).one_or_none()
            return self._to_domain(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving submission {submission_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve submission: {e}") from e

    def get_for_user_and_job(self, user_id: str, job_id: str) -> Optional[Submission]:
        try:
            stmt = self._select_with_details().where(
                SubmissionModel.user_id == user_id, SubmissionModel.job_id == job_id
            )
            row = self.session.execute(stmt).one_or_none()
            return self._to_domain(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Error checking submission for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve submission: {e}") from e

    def create(self, submission: Submission) -> Submission:
        """Insert a submission.

        Raises:
            DataIntegrityError: If the user already submitted to this job
        """
        try:
            self.session.add(SubmissionModel.from_domain(submission))
            self.session.flush()
            return self.get(submission.id)
        except IntegrityError as e:
            raise DataIntegrityError(
                f"User {submission.user_id} already submitted to job {submission.job_id}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating submission: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create submission: {e}") from e

    def list_for_user(
        self, user_id: str, status: Optional[SubmissionStatus] = None
    ) -> List[Submission]:
        """A user's submissions, newest first."""
        try:
            stmt = self._select_with_details().where(SubmissionModel.user_id == user_id)
            if status is not None:
                stmt = stmt.where(SubmissionModel.status == status.value)
            stmt = stmt.order_by(SubmissionModel.created_at.desc())
            return [self._to_domain(row) for row in self.session.execute(stmt).all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing submissions for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list submissions: {e}") from e

    def list_for_job(
        self, job_id: str, status: Optional[SubmissionStatus] = None
    ) -> List[Submission]:
        try:
            stmt = self._select_with_details().where(SubmissionModel.job_id == job_id)
            if status is not None:
                stmt = stmt.where(SubmissionModel.status == status.value)
            return [self._to_domain(row) for row in self.session.execute(stmt).all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing submissions for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list submissions: {e}") from e

    def list_recent(
        self, limit: int, status: Optional[SubmissionStatus] = None
    ) -> List[Submission]:
        """Most recent submissions across all users, newest first."""
        try:
            stmt = self._select_with_details()
            if status is not None:
                stmt = stmt.where(SubmissionModel.status == status.value)
            stmt = stmt.order_by(SubmissionModel.created_at.desc()).limit(limit)
            return [self._to_domain(row) for row in self.session.execute(stmt).all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing recent submissions: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list submissions: {e}") from e

    def record_review(
        self,
        submission_id: str,
        status: SubmissionStatus,
        admin_feedback: Optional[str],
        reviewed_at: datetime,
        reviewed_by: str,
    ) -> Submission:
        """Store a review decision.

        Updates go through the ORM object so row-change listeners fire.

        Raises:
            RecordNotFoundError: If submission doesn't exist
        """
        try:
            model = self.session.get(SubmissionModel, submission_id)
            if model is None:
                raise RecordNotFoundError(f"Submission {submission_id} not found")
            model.status = status.value
            model.admin_feedback = admin_feedback
            model.reviewed_at = _format_datetime(reviewed_at)
            model.reviewed_by = reviewed_by
            self.session.flush()
            return self.get(submission_id)
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error reviewing submission {submission_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record review: {e}") from e

    def count(self, status: Optional[SubmissionStatus] = None) -> int:
        try:
            stmt = select(func.count()).select_from(SubmissionModel)
            if status is not None:
                stmt = stmt.where(SubmissionModel.status == status.value)
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting submissions: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count submissions: {e}") from e


class TransactionRepository:
    """Repository for payment bookkeeping rows."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, transaction: Transaction) -> Transaction:
        try:
            model = TransactionModel.from_domain(transaction)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to record transaction: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating transaction: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create transaction: {e}") from e

    def get(self, transaction_id: str) -> Optional[Transaction]:
        try:
            model = self.session.get(TransactionModel, transaction_id)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving transaction {transaction_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve transaction: {e}") from e

    def list_for_user(self, user_id: str) -> List[Transaction]:
        try:
            stmt = (
                select(TransactionModel)
                .where(TransactionModel.user_id == user_id)
                .order_by(TransactionModel.created_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing transactions for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list transactions: {e}") from e

    def set_status(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        try:
            model = self.session.get(TransactionModel, transaction_id)
            if model is None:
                raise RecordNotFoundError(f"Transaction {transaction_id} not found")
            model.status = status.value
            self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating transaction {transaction_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update transaction: {e}") from e


class AuthSessionRepository:
    """Repository for issued sessions, keyed by token digests."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        access_token_hash: str,
        refresh_token_hash: str,
        user_id: str,
        expires_at: datetime,
        refresh_expires_at: datetime,
        created_at: datetime,
    ) -> AuthSession:
        try:
            model = AuthSessionModel(
                access_token_hash=access_token_hash,
                refresh_token_hash=refresh_token_hash,
                user_id=user_id,
                expires_at=_format_datetime(expires_at),
                refresh_expires_at=_format_datetime(refresh_expires_at),
                created_at=_format_datetime(created_at),
            )
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to store session: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating session: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create session: {e}") from e

    def get_by_access_hash(self, access_token_hash: str) -> Optional[AuthSession]:
        try:
            model = self.session.get(AuthSessionModel, access_token_hash)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving session: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve session: {e}") from e

    def get_by_refresh_hash(self, refresh_token_hash: str) -> Optional[AuthSession]:
        try:
            stmt = select(AuthSessionModel).where(
                AuthSessionModel.refresh_token_hash == refresh_token_hash
            )
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving session by refresh token: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve session: {e}") from e

    def revoke(self, access_token_hash: str, revoked_at: datetime) -> bool:
        """Mark a session revoked. Returns False if it was unknown or already revoked."""
        try:
            stmt = (
                update(AuthSessionModel)
                .where(
                    AuthSessionModel.access_token_hash == access_token_hash,
                    AuthSessionModel.revoked_at.is_(None),
                )
                .values(revoked_at=_format_datetime(revoked_at))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return bool(result.rowcount)
        except SQLAlchemyError as e:
            logger.error(f"Error revoking session: {e}", exc_info=True)
            raise PersistenceError(f"Failed to revoke session: {e}") from e

    def extend(self, access_token_hash: str, expires_at: datetime) -> None:
        try:
            stmt = (
                update(AuthSessionModel)
                .where(AuthSessionModel.access_token_hash == access_token_hash)
                .values(expires_at=_format_datetime(expires_at))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            if result.rowcount == 0:
                raise RecordNotFoundError("Session not found")
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error extending session: {e}", exc_info=True)
            raise PersistenceError(f"Failed to extend session: {e}") from e

    def list_expiring(self, now: datetime, before: datetime) -> List[AuthSession]:
        """Live sessions whose access expiry falls in [now, before]."""
        try:
            stmt = (
                select(AuthSessionModel)
                .where(
                    AuthSessionModel.revoked_at.is_(None),
                    AuthSessionModel.expires_at >= _format_datetime(now),
                    AuthSessionModel.expires_at <= _format_datetime(before),
                    AuthSessionModel.refresh_expires_at > _format_datetime(now),
                )
                .order_by(AuthSessionModel.expires_at.asc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing expiring sessions: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list expiring sessions: {e}") from e

    def purge_dead(self, now: datetime) -> int:
        """Delete sessions that can no longer be used or refreshed."""
        try:
            stmt = delete(AuthSessionModel).where(
                (AuthSessionModel.refresh_expires_at <= _format_datetime(now))
                | AuthSessionModel.revoked_at.is_not(None)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error purging sessions: {e}", exc_info=True)
            raise PersistenceError(f"Failed to purge sessions: {e}") from e


class VerificationTokenRepository:
    """Repository for email verification tokens."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, token: VerificationToken) -> VerificationToken:
        try:
            model = VerificationTokenModel(
                token_hash=token.token_hash,
                user_id=token.user_id,
                type=token.type,
                expires_at=_format_datetime(token.expires_at),
                consumed_at=_format_datetime(token.consumed_at),
                created_at=_format_datetime(token.created_at),
            )
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to store verification token: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating verification token: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create verification token: {e}") from e

    def get(self, token_hash: str) -> Optional[VerificationToken]:
        try:
            model = self.session.get(VerificationTokenModel, token_hash)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving verification token: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve verification token: {e}") from e

    def consume(self, token_hash: str, consumed_at: datetime) -> None:
        try:
            stmt = (
                update(VerificationTokenModel)
                .where(VerificationTokenModel.token_hash == token_hash)
                .values(consumed_at=_format_datetime(consumed_at))
            )
            self.session.execute(stmt)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error consuming verification token: {e}", exc_info=True)
            raise PersistenceError(f"Failed to consume verification token: {e}") from e

    def invalidate_for_user(self, user_id: str, at: datetime) -> int:
        """Consume every outstanding token for a user (before issuing a new one)."""
        try:
            stmt = (
                update(VerificationTokenModel)
                .where(
                    VerificationTokenModel.user_id == user_id,
                    VerificationTokenModel.consumed_at.is_(None),
                )
                .values(consumed_at=_format_datetime(at))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error invalidating verification tokens: {e}", exc_info=True)
            raise PersistenceError(f"Failed to invalidate verification tokens: {e}") from e
