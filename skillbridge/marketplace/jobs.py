"""Member-facing marketplace: job board, job detail, work submission and history."""

import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from skillbridge.config.models import AppConfig
from skillbridge.domain.models import Job, Profile, Submission, SubmissionStatus
from skillbridge.logging import get_logger
from skillbridge.logging.context import log_context
from skillbridge.membership import MembershipPolicy, SubmitBlockReason, can_access_job
from skillbridge.persistence import (
    DataIntegrityError,
    JobRepository,
    ProfileRepository,
    RecordNotFoundError,
    SubmissionRepository,
    get_session,
)
from skillbridge.storage import (
    CloudinaryUploader,
    FileValidationError,
    StorageError,
    UploadFile,
    file_kind,
    validate_upload,
)
from skillbridge.utils import matches_search, utc_now

from .exceptions import (
    SUBMISSION_CONTENT_REQUIRED,
    DuplicateSubmissionError,
    JobNotFoundError,
    MarketplaceValidationError,
    SubmissionNotAllowedError,
    SubmissionUploadError,
)
from .models import JobDetail, JobListing, SubmissionHistory, SubmissionStats

logger = get_logger(__name__, component="marketplace")

ALL = "all"


def _is_all(value: Optional[str]) -> bool:
    return not value or value.strip().lower() == ALL


def _matches_category(job: Job, category: str) -> bool:
    wanted = category.strip()
    if job.category_id == wanted:
        return True
    return (job.category_name or "").lower() == wanted.lower()


def filter_jobs(
    jobs: List[Job],
    search: Optional[str] = None,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
) -> List[Job]:
    """Apply board filters. ``all`` or an empty value disables a filter.

    ``category`` matches the category id exactly or its name ignoring case.
    """
    result = []
    for job in jobs:
        if search and not matches_search(search, [job.title, job.description]):
            continue
        if not _is_all(category) and not _matches_category(job, category):
            continue
        if not _is_all(difficulty) and job.difficulty.value != difficulty.strip().lower():
            continue
        result.append(job)
    return result


def parse_status_filter(status: Optional[str]) -> Optional[SubmissionStatus]:
    """Map ``all|pending|approved|rejected`` to a status (None for all).

    Raises:
        MarketplaceValidationError: On any other value
    """
    if _is_all(status):
        return None
    try:
        return SubmissionStatus(status.strip().lower())
    except ValueError as e:
        raise MarketplaceValidationError(
            f"Unknown status filter '{status}'. Use all, pending, approved or rejected."
        ) from e


class JobBoard:
    """Browsing, submitting and tracking work as a member."""

    def __init__(
        self,
        config: AppConfig,
        uploader: Optional[CloudinaryUploader] = None,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.uploader = uploader
        self.clock = clock
        self.policy = MembershipPolicy(config.membership)
        self.logger = logger_instance or logger

    def browse_jobs(
        self,
        profile: Optional[Profile],
        search: Optional[str] = None,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> List[JobListing]:
        """Active jobs newest first, each flagged with whether the viewer can open it."""
        with get_session() as session:
            jobs = JobRepository(session).get_all(active_only=True)

        tier = profile.membership_tier if profile else None
        listings = [
            JobListing(job=job, is_accessible=can_access_job(tier, job.required_tier))
            for job in filter_jobs(jobs, search, category, difficulty)
        ]
        self.logger.debug(
            f"Job board returned {len(listings)} of {len(jobs)} active jobs",
            extra={"event": "marketplace.jobs.listed", "count": len(listings)},
        )
        return listings

    def get_job_detail(self, job_id: str, profile: Optional[Profile]) -> JobDetail:
        """Job with the viewer's submission state.

        Raises:
            RecordNotFoundError: If the viewer has no member profile
            JobNotFoundError: If the job doesn't exist
        """
        if profile is None:
            raise RecordNotFoundError("Member profile not found")
        today = self.clock().date()
        with get_session() as session:
            job = JobRepository(session).get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            existing = SubmissionRepository(session).get_for_user_and_job(profile.id, job_id)

        eligibility = self.policy.check_submit(profile, job, existing is not None, today)
        return JobDetail(
            job=job,
            is_accessible=can_access_job(profile.membership_tier, job.required_tier),
            has_submitted=existing is not None,
            can_submit=eligibility.allowed,
            blocked_reason=eligibility.message,
            tasks_remaining=self.policy.tasks_remaining(profile, today),
            submission=existing,
            job_file_kind=file_kind(job.job_file_name) if job.job_file_url else None,
        )

    def submit_work(
        self,
        user_id: str,
        job_id: str,
        content: Optional[str] = None,
        upload: Optional[UploadFile] = None,
    ) -> Submission:
        """Record a pending submission for review.

        The file (if any) is uploaded before anything is written; an upload
        failure aborts the submission. On success the member's daily counter
        and pending earnings and the job's submission count all move together.

        Raises:
            MarketplaceValidationError: If neither file nor text was given, or the file is invalid
            JobNotFoundError: If the job doesn't exist
            SubmissionNotAllowedError: If tier, daily cap or job state blocks it
            DuplicateSubmissionError: If the member already submitted to the job
            SubmissionUploadError: If the file could not be uploaded
        """
        text = (content or "").strip()
        if upload is None and not text:
            raise MarketplaceValidationError(SUBMISSION_CONTENT_REQUIRED)

        with log_context(user_id=user_id, job_id=job_id):
            # Re-checked inside the write transaction below.
            self._check_can_submit(user_id, job_id)

            uploaded_url = None
            if upload is not None:
                uploaded_url = self._upload_submission_file(upload)

            now = self.clock()
            today = now.date()
            submission_id = str(uuid4())

            try:
                with get_session() as session:
                    profile, job = self._check_can_submit(user_id, job_id, session=session)

                    submission = SubmissionRepository(session).create(
                        Submission(
                            id=submission_id,
                            job_id=job_id,
                            user_id=user_id,
                            submission_content=text or f"File uploaded: {upload.filename}",
                            file_url=uploaded_url,
                            file_name=upload.filename if uploaded_url else None,
                            file_type=upload.content_type if uploaded_url else None,
                            file_size=upload.size if uploaded_url else None,
                            status=SubmissionStatus.PENDING,
                            payment_amount=job.payment_amount,
                            created_at=now,
                        )
                    )

                    ProfileRepository(session).save(
                        profile.model_copy(
                            update={
                                "daily_tasks_used": profile.tasks_used_on(today) + 1,
                                "last_task_reset_date": today,
                                "pending_earnings": round(profile.pending_earnings + job.payment_amount, 2),
                                "updated_at": now,
                            }
                        )
                    )
                    JobRepository(session).increment_submissions(job_id)
            except DataIntegrityError as e:
                raise DuplicateSubmissionError() from e

            self.logger.info(
                f"Submission created for job '{job.title}'",
                extra={
                    "event": "submission.created",
                    "submission_id": submission_id,
                    "has_file": uploaded_url is not None,
                    "payment_amount": job.payment_amount,
                },
            )
        return submission

    def list_submissions(self, user_id: str, status: Optional[str] = None) -> SubmissionHistory:
        """The member's submissions newest first; stats always cover all of them.

        Raises:
            MarketplaceValidationError: On an unknown status filter
        """
        status_filter = parse_status_filter(status)
        with get_session() as session:
            submissions = SubmissionRepository(session).list_for_user(user_id)

        filtered = [s for s in submissions if status_filter is None or s.status == status_filter]
        return SubmissionHistory(
            submissions=filtered, stats=SubmissionStats.from_submissions(submissions)
        )

    def _check_can_submit(self, user_id: str, job_id: str, session=None):
        if session is None:
            with get_session() as own_session:
                return self._check_can_submit(user_id, job_id, session=own_session)

        profile = ProfileRepository(session).get(user_id)
        if profile is None:
            raise RecordNotFoundError(f"Profile {user_id} not found")
        job = JobRepository(session).get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        has_submitted = (
            SubmissionRepository(session).get_for_user_and_job(user_id, job_id) is not None
        )

        eligibility = self.policy.check_submit(profile, job, has_submitted, self.clock().date())
        if not eligibility.allowed:
            if eligibility.reason == SubmitBlockReason.ALREADY_SUBMITTED:
                raise DuplicateSubmissionError()
            self.logger.info(
                f"Submission blocked: {eligibility.reason.value}",
                extra={"event": "submission.blocked", "reason": eligibility.reason.value},
            )
            raise SubmissionNotAllowedError(eligibility.message, reason=eligibility.reason)
        return profile, job

    def _upload_submission_file(self, upload: UploadFile) -> str:
        try:
            validate_upload(
                upload,
                self.config.uploads.max_file_size_bytes,
                self.config.uploads.allowed_extensions,
            )
        except FileValidationError as e:
            raise MarketplaceValidationError(str(e)) from e

        if self.uploader is None:
            self.logger.error(
                "Submission file received but uploads are not configured",
                extra={"event": "submission.upload.unconfigured"},
            )
            raise SubmissionUploadError()

        try:
            return self.uploader.upload(upload).url
        except StorageError as e:
            self.logger.error(
                f"Submission file upload failed: {e}",
                extra={"event": "submission.upload.failed", "file_name": upload.filename},
            )
            raise SubmissionUploadError() from e
