"""Jobs, submissions and the admin panel.

- JobBoard: browsing, job detail, work submission and history for members
- AdminService: job management, submission review, stats and categories
"""

from .admin import AdminService
from .exceptions import (
    SUBMISSION_CONTENT_REQUIRED,
    SUBMISSION_UPLOAD_FAILED,
    AlreadyReviewedError,
    CategoryExistsError,
    CategoryNotFoundError,
    DuplicateSubmissionError,
    JobNotFoundError,
    MarketplaceError,
    MarketplaceValidationError,
    SubmissionNotAllowedError,
    SubmissionNotFoundError,
    SubmissionUploadError,
)
from .jobs import JobBoard, filter_jobs, parse_status_filter
from .models import (
    DashboardStats,
    JobDetail,
    JobDraft,
    JobListing,
    ReviewRequest,
    SubmissionHistory,
    SubmissionStats,
)

__all__ = [
    # Services
    "JobBoard",
    "AdminService",
    # Models
    "JobListing",
    "JobDetail",
    "JobDraft",
    "ReviewRequest",
    "SubmissionHistory",
    "SubmissionStats",
    "DashboardStats",
    # Helpers
    "filter_jobs",
    "parse_status_filter",
    # Exceptions
    "MarketplaceError",
    "MarketplaceValidationError",
    "JobNotFoundError",
    "SubmissionNotFoundError",
    "CategoryNotFoundError",
    "CategoryExistsError",
    "SubmissionNotAllowedError",
    "DuplicateSubmissionError",
    "SubmissionUploadError",
    "AlreadyReviewedError",
    "SUBMISSION_CONTENT_REQUIRED",
    "SUBMISSION_UPLOAD_FAILED",
]
