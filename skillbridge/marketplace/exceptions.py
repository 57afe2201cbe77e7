"""Marketplace errors.

Messages are safe to show to members and admins as-is.
"""

from typing import Optional

from skillbridge.membership import SubmitBlockReason

SUBMISSION_CONTENT_REQUIRED = "Please either upload a file or enter submission content."
SUBMISSION_UPLOAD_FAILED = "Failed to upload file. Please try submitting as text instead."


class MarketplaceError(Exception):
    """Base exception for marketplace operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MarketplaceValidationError(MarketplaceError):
    """Input was rejected before anything was stored."""


class JobNotFoundError(MarketplaceError):
    def __init__(self, job_id: str):
        super().__init__("Job not found")
        self.job_id = job_id


class SubmissionNotFoundError(MarketplaceError):
    def __init__(self, submission_id: str):
        super().__init__("Submission not found")
        self.submission_id = submission_id


class CategoryNotFoundError(MarketplaceError):
    def __init__(self, category_id: str):
        super().__init__("Category not found")
        self.category_id = category_id


class SubmissionNotAllowedError(MarketplaceError):
    """The member's tier, daily cap or the job's state blocks the submission."""

    def __init__(self, message: str, reason: Optional[SubmitBlockReason] = None):
        super().__init__(message)
        self.reason = reason


class DuplicateSubmissionError(MarketplaceError):
    def __init__(self, message: str = "You have already submitted work for this job."):
        super().__init__(message)


class SubmissionUploadError(MarketplaceError):
    """The submission file could not be stored; nothing was recorded."""

    def __init__(self, message: str = SUBMISSION_UPLOAD_FAILED):
        super().__init__(message)


class AlreadyReviewedError(MarketplaceError):
    def __init__(self, submission_id: str, status: str):
        super().__init__(f"Submission has already been {status}")
        self.submission_id = submission_id
        self.status = status


class CategoryExistsError(MarketplaceError):
    def __init__(self, name: str):
        super().__init__(f"Category '{name}' already exists")
        self.name = name
