"""Template context builders for each email kind."""

from typing import Dict, Optional
from urllib.parse import urlencode

from skillbridge.domain.models import Submission, SubmissionStatus
from skillbridge.utils import format_currency, format_date_for_display, utc_now

APP_NAME = "SkillBridge"


def build_verification_url(site_url: str, token: str, email: str, token_type: str = "signup") -> str:
    """Link to the front-end callback page that completes verification.

    Example:
        >>> build_verification_url("https://skillbridge.example", "abc", "a@b.co")
        'https://skillbridge.example/auth/callback?token=abc&type=signup&email=a%40b.co'
    """
    query = urlencode({"token": token, "type": token_type, "email": email})
    return f"{site_url.rstrip('/')}/auth/callback?{query}"


def build_verification_context(
    verification_url: str,
    full_name: Optional[str],
    expires_in_seconds: int,
) -> Dict:
    return {
        "app_name": APP_NAME,
        "full_name": full_name,
        "verification_url": verification_url,
        "expires_in_hours": max(expires_in_seconds // 3600, 1),
    }


def build_review_context(submission: Submission, site_url: str) -> Dict:
    """Context for the submission-reviewed email.

    Args:
        submission: Reviewed submission with job_title/user_name joined in
        site_url: Public origin for the submissions page link
    """
    approved = submission.status == SubmissionStatus.APPROVED
    return {
        "app_name": APP_NAME,
        "user_name": submission.user_name,
        "job_title": submission.job_title or "your job",
        "status": submission.status.value,
        "approved": approved,
        "payment": format_currency(submission.payment_amount),
        "feedback": submission.admin_feedback,
        "reviewed_on": format_date_for_display(submission.reviewed_at or utc_now()),
        "submissions_url": f"{site_url.rstrip('/')}/submissions",
    }
