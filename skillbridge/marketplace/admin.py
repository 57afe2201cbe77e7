"""Admin panel operations: job management, submission review and dashboard stats."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from skillbridge.config.models import AppConfig
from skillbridge.domain.models import (
    Job,
    JobCategory,
    Submission,
    SubmissionStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from skillbridge.logging import get_logger
from skillbridge.logging.context import log_context
from skillbridge.notifications import NotificationError, NotificationService
from skillbridge.persistence import (
    CategoryRepository,
    DataIntegrityError,
    JobRepository,
    ProfileRepository,
    RecordNotFoundError,
    SubmissionRepository,
    TransactionRepository,
    get_session,
)
from skillbridge.storage import CloudinaryUploader, StorageError, UploadFile, validate_upload
from skillbridge.utils import matches_search, utc_now

from .exceptions import (
    AlreadyReviewedError,
    CategoryExistsError,
    CategoryNotFoundError,
    JobNotFoundError,
    MarketplaceValidationError,
    SubmissionNotFoundError,
)
from .jobs import parse_status_filter
from .models import DashboardStats, JobDraft, ReviewRequest

logger = get_logger(__name__, component="admin")


class AdminService:
    """Everything behind the admin panel.

    Callers are expected to have checked the admin role already.
    """

    def __init__(
        self,
        config: AppConfig,
        uploader: Optional[CloudinaryUploader] = None,
        notifier: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.uploader = uploader
        self.notifier = notifier
        self.clock = clock
        self.logger = logger_instance or logger

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def list_jobs(self) -> List[Job]:
        """All jobs, active or not, newest first."""
        with get_session() as session:
            return JobRepository(session).get_all()

    def create_job(self, draft: JobDraft, upload: Optional[UploadFile] = None) -> Job:
        """Create a job. A failed file upload leaves the job without a file.

        Raises:
            CategoryNotFoundError: If ``category_id`` is unknown
        """
        now = self.clock()
        file_fields = self._try_upload_job_file(upload) if upload is not None else {}

        with get_session() as session:
            self._check_category(session, draft.category_id)
            job = JobRepository(session).create(
                Job(
                    id=str(uuid4()),
                    created_at=now,
                    updated_at=now,
                    **draft.model_dump(),
                    **file_fields,
                )
            )

        self.logger.info(
            f"Job '{job.title}' created " + ("with file" if file_fields else "without file"),
            extra={"event": "admin.job.created", "job_id": job.id},
        )
        return job

    def update_job(self, job_id: str, draft: JobDraft, upload: Optional[UploadFile] = None) -> Job:
        """Replace a job's editable fields.

        A new file replaces the old one; if its upload fails the existing
        file is kept.

        Raises:
            JobNotFoundError: If the job doesn't exist
            CategoryNotFoundError: If ``category_id`` is unknown
        """
        file_fields = self._try_upload_job_file(upload) if upload is not None else {}

        with get_session() as session:
            repo = JobRepository(session)
            existing = repo.get(job_id)
            if existing is None:
                raise JobNotFoundError(job_id)
            self._check_category(session, draft.category_id)

            updates = {**draft.model_dump(), **file_fields, "updated_at": self.clock()}
            job = repo.update(existing.model_copy(update=updates))

        self.logger.info(
            f"Job '{job.title}' updated",
            extra={"event": "admin.job.updated", "job_id": job_id, "file_replaced": bool(file_fields)},
        )
        return job

    def delete_job(self, job_id: str) -> None:
        """Delete a job and its submissions.

        Amounts of the job's pending submissions are released from each
        member's pending earnings in the same transaction.

        Raises:
            JobNotFoundError: If the job doesn't exist
        """
        now = self.clock()
        try:
            with get_session() as session:
                pending = SubmissionRepository(session).list_for_job(
                    job_id, status=SubmissionStatus.PENDING
                )
                JobRepository(session).delete(job_id)
                released = self._release_pending(session, pending, now)
        except RecordNotFoundError as e:
            raise JobNotFoundError(job_id) from e
        self.logger.info(
            "Job deleted",
            extra={
                "event": "admin.job.deleted",
                "job_id": job_id,
                "pending_submissions": len(pending),
                "released_earnings": released,
            },
        )

    def _release_pending(self, session, pending: List[Submission], now: datetime) -> float:
        totals: Dict[str, float] = defaultdict(float)
        for submission in pending:
            totals[submission.user_id] += submission.payment_amount

        profiles = ProfileRepository(session)
        for user_id, amount in totals.items():
            profile = profiles.get(user_id)
            if profile is None:
                continue
            profiles.save(
                profile.model_copy(
                    update={
                        "pending_earnings": round(max(profile.pending_earnings - amount, 0.0), 2),
                        "updated_at": now,
                    }
                )
            )
        return round(sum(totals.values()), 2)

    def toggle_job(self, job_id: str) -> Job:
        """Flip a job between active and inactive.

        Raises:
            JobNotFoundError: If the job doesn't exist
        """
        with get_session() as session:
            repo = JobRepository(session)
            job = repo.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            job = repo.set_active(job_id, not job.is_active, self.clock())

        self.logger.info(
            f"Job {'activated' if job.is_active else 'deactivated'}",
            extra={"event": "admin.job.toggled", "job_id": job_id, "is_active": job.is_active},
        )
        return job

    def _check_category(self, session, category_id: Optional[str]) -> None:
        if category_id and CategoryRepository(session).get(category_id) is None:
            raise CategoryNotFoundError(category_id)

    def _try_upload_job_file(self, upload: UploadFile) -> dict:
        if self.uploader is None:
            self.logger.warning(
                "Uploads not configured; saving job without file",
                extra={"event": "admin.job.upload_skipped", "file_name": upload.filename},
            )
            return {}
        try:
            validate_upload(
                upload,
                self.config.uploads.max_file_size_bytes,
                self.config.uploads.allowed_extensions,
            )
            result = self.uploader.upload(upload)
        except StorageError as e:
            self.logger.warning(
                f"Job file upload failed, continuing without file: {e}",
                extra={"event": "admin.job.upload_failed", "file_name": upload.filename},
            )
            return {}
        return {
            "job_file_url": result.url,
            "job_file_name": upload.filename,
            "job_file_type": upload.content_type,
        }

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def list_submissions(
        self, search: Optional[str] = None, status: Optional[str] = None
    ) -> List[Submission]:
        """Most recent submissions (capped), optionally filtered.

        Search is case-insensitive over job title, member email, member name
        and submission text, and applies within the capped window.

        Raises:
            MarketplaceValidationError: On an unknown status filter
        """
        status_filter = parse_status_filter(status)
        with get_session() as session:
            submissions = SubmissionRepository(session).list_recent(
                self.config.api.admin_submission_limit, status=status_filter
            )
        if not search:
            return submissions
        return [
            s
            for s in submissions
            if matches_search(search, [s.job_title, s.user_email, s.user_name, s.submission_content])
        ]

    def review_submission(
        self, submission_id: str, review: ReviewRequest, reviewer_id: str
    ) -> Submission:
        """Approve or reject a pending submission and settle the member's earnings.

        Approval moves the amount from pending to approved and total earnings,
        counts a completed task and records an earning transaction. Rejection
        releases the amount from pending. The member is emailed afterwards;
        email failures are logged only.

        Raises:
            SubmissionNotFoundError: If the submission doesn't exist
            AlreadyReviewedError: If it was already approved or rejected
        """
        now = self.clock()

        with log_context(submission_id=submission_id):
            with get_session() as session:
                submissions = SubmissionRepository(session)
                current = submissions.get(submission_id)
                if current is None:
                    raise SubmissionNotFoundError(submission_id)
                if current.status != SubmissionStatus.PENDING:
                    raise AlreadyReviewedError(submission_id, current.status.value)

                reviewed = submissions.record_review(
                    submission_id, review.status, review.feedback, now, reviewer_id
                )
                self._settle_earnings(session, reviewed, now)

            self.logger.info(
                f"Submission {review.status.value}",
                extra={
                    "event": "admin.submission.reviewed",
                    "status": review.status.value,
                    "reviewed_by": reviewer_id,
                    "payment_amount": reviewed.payment_amount,
                },
            )
            self._notify_reviewed(reviewed)
        return reviewed

    def _settle_earnings(self, session, submission: Submission, now: datetime) -> None:
        profiles = ProfileRepository(session)
        profile = profiles.get(submission.user_id)
        if profile is None:
            self.logger.warning(
                "Reviewed submission has no member profile; earnings not updated",
                extra={"event": "admin.submission.no_profile", "user_id": submission.user_id},
            )
            return

        amount = submission.payment_amount
        updates = {
            "pending_earnings": round(max(profile.pending_earnings - amount, 0.0), 2),
            "updated_at": now,
        }
        if submission.status == SubmissionStatus.APPROVED:
            updates.update(
                approved_earnings=round(profile.approved_earnings + amount, 2),
                total_earnings=round(profile.total_earnings + amount, 2),
                tasks_completed=profile.tasks_completed + 1,
            )
            TransactionRepository(session).create(
                Transaction(
                    id=str(uuid4()),
                    user_id=submission.user_id,
                    type=TransactionType.EARNING,
                    amount=amount,
                    status=TransactionStatus.COMPLETED,
                    description=f"Earning for {submission.job_title or 'job'}",
                    reference_id=submission.id,
                    created_at=now,
                )
            )
        profiles.save(profile.model_copy(update=updates))

    def _notify_reviewed(self, submission: Submission) -> None:
        if self.notifier is None:
            return
        try:
            result = self.notifier.send_submission_reviewed(submission, self.config.site_url)
        except NotificationError as e:
            self.logger.warning(
                f"Review email failed: {e}", extra={"event": "admin.submission.notify_failed"}
            )
            return
        if result.status == "failed":
            self.logger.warning(
                f"Review email not delivered: {result.error}",
                extra={"event": "admin.submission.notify_failed"},
            )

    # ------------------------------------------------------------------
    # Dashboard and categories
    # ------------------------------------------------------------------

    def get_stats(self) -> DashboardStats:
        with get_session() as session:
            jobs = JobRepository(session)
            submissions = SubmissionRepository(session)
            return DashboardStats(
                total_jobs=jobs.count(),
                active_jobs=jobs.count(active_only=True),
                pending_reviews=submissions.count(SubmissionStatus.PENDING),
                total_submissions=submissions.count(),
            )

    def list_categories(self) -> List[JobCategory]:
        with get_session() as session:
            return CategoryRepository(session).get_all()

    def create_category(self, name: str) -> JobCategory:
        """Raises CategoryExistsError on a duplicate name."""
        try:
            category = JobCategory(id=str(uuid4()), name=name)
        except ValueError as e:
            raise MarketplaceValidationError("Category name cannot be empty") from e

        try:
            with get_session() as session:
                category = CategoryRepository(session).create(category)
        except DataIntegrityError as e:
            raise CategoryExistsError(category.name) from e

        self.logger.info(
            f"Category '{category.name}' created",
            extra={"event": "admin.category.created", "category_id": category.id},
        )
        return category
