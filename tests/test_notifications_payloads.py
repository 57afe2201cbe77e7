"""Tests for the email template context builders."""

from datetime import datetime, timezone

from skillbridge.domain.models import Submission, SubmissionStatus
from skillbridge.notifications.payloads import (
    build_review_context,
    build_verification_context,
    build_verification_url,
)

REVIEWED_AT = datetime(2026, 10, 18, 15, 30, tzinfo=timezone.utc)


def make_submission(**fields):
    fields.setdefault("status", SubmissionStatus.APPROVED)
    return Submission(
        id="sub-1",
        job_id="job-1",
        user_id="user-1",
        submission_content="Here you go",
        payment_amount=12.5,
        created_at=datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc),
        reviewed_at=REVIEWED_AT,
        job_title="Logo design",
        user_name="Ada Worker",
        user_email="ada@example.com",
        **fields,
    )


class TestVerificationUrl:
    def test_query_is_encoded(self):
        url = build_verification_url("https://skillbridge.example/", "tok+en", "ada+1@example.com")

        assert url == (
            "https://skillbridge.example/auth/callback"
            "?token=tok%2Ben&type=signup&email=ada%2B1%40example.com"
        )

    def test_token_type(self):
        url = build_verification_url("http://localhost:5173", "abc", "a@b.co", token_type="recovery")

        assert "type=recovery" in url


class TestVerificationContext:
    def test_hours_rounded_down(self):
        context = build_verification_context("https://x/cb", "Ada", 86400 + 1800)

        assert context == {
            "app_name": "SkillBridge",
            "full_name": "Ada",
            "verification_url": "https://x/cb",
            "expires_in_hours": 24,
        }

    def test_at_least_one_hour(self):
        assert build_verification_context("https://x/cb", None, 600)["expires_in_hours"] == 1


class TestReviewContext:
    def test_approved(self):
        context = build_review_context(
            make_submission(admin_feedback="Great work"), "https://skillbridge.example/"
        )

        assert context["approved"] is True
        assert context["status"] == "approved"
        assert context["payment"] == "$12.50"
        assert context["feedback"] == "Great work"
        assert context["reviewed_on"] == "Oct 18, 2026"
        assert context["job_title"] == "Logo design"
        assert context["user_name"] == "Ada Worker"
        assert context["submissions_url"] == "https://skillbridge.example/submissions"

    def test_rejected_without_job_title(self):
        submission = make_submission(status=SubmissionStatus.REJECTED).model_copy(
            update={"job_title": None}
        )

        context = build_review_context(submission, "http://localhost:5173")

        assert context["approved"] is False
        assert context["status"] == "rejected"
        assert context["job_title"] == "your job"
        assert context["feedback"] is None
