"""Tests for email template rendering.

Covers both message kinds, escaping in the HTML body only, and template
errors surfacing as NotificationTemplateError.
"""

import pytest

from skillbridge.notifications.models import NotificationTemplateError
from skillbridge.notifications.templates import TemplateRenderer

VERIFY_URL = "https://skillbridge.example/auth/callback?token=abc&type=signup&email=ada%40example.com"


@pytest.fixture
def renderer():
    return TemplateRenderer()


@pytest.fixture
def verification_context():
    return {
        "app_name": "SkillBridge",
        "full_name": "Ada Worker",
        "verification_url": VERIFY_URL,
        "expires_in_hours": 24,
    }


@pytest.fixture
def review_context():
    return {
        "app_name": "SkillBridge",
        "user_name": "Ada Worker",
        "job_title": "Logo design",
        "status": "approved",
        "approved": True,
        "payment": "$12.50",
        "feedback": "Great <b>work</b>",
        "reviewed_on": "Oct 18, 2026",
        "submissions_url": "https://skillbridge.example/submissions",
    }


class TestVerificationTemplates:
    def test_subject(self, renderer, verification_context):
        rendered = renderer.render("verification", verification_context)

        assert rendered["subject"] == "Confirm your SkillBridge account"

    def test_text_body_keeps_link_intact(self, renderer, verification_context):
        rendered = renderer.render("verification", verification_context)

        assert VERIFY_URL in rendered["text_body"]
        assert "Hi Ada Worker," in rendered["text_body"]
        assert "expires in 24 hours" in rendered["text_body"]

    def test_html_body_escapes_link(self, renderer, verification_context):
        rendered = renderer.render("verification", verification_context)

        assert VERIFY_URL.replace("&", "&amp;") in rendered["html_body"]

    def test_singular_hour_and_anonymous_greeting(self, renderer, verification_context):
        verification_context.update(full_name=None, expires_in_hours=1)

        rendered = renderer.render("verification", verification_context)

        assert "Hi there," in rendered["text_body"]
        assert "expires in 1 hour." in rendered["text_body"]


class TestReviewTemplates:
    def test_approved(self, renderer, review_context):
        rendered = renderer.render("submission_reviewed", review_context)

        assert rendered["subject"] == 'Your submission for "Logo design" was approved'
        assert "Status: APPROVED" in rendered["text_body"]
        assert "Payment: $12.50 has been added" in rendered["text_body"]
        assert "https://skillbridge.example/submissions" in rendered["text_body"]

    def test_feedback_escaped_only_in_html(self, renderer, review_context):
        rendered = renderer.render("submission_reviewed", review_context)

        assert "Great <b>work</b>" in rendered["text_body"]
        assert "Great &lt;b&gt;work&lt;/b&gt;" in rendered["html_body"]

    def test_rejected_without_feedback(self, renderer, review_context):
        review_context.update(status="rejected", approved=False, feedback=None)

        rendered = renderer.render("submission_reviewed", review_context)

        assert rendered["subject"] == 'Your submission for "Logo design" was rejected'
        assert "Status: REJECTED" in rendered["text_body"]
        assert "Payment:" not in rendered["text_body"]
        assert "Feedback from the reviewer" not in rendered["text_body"]


class TestRenderErrors:
    def test_missing_variable(self, renderer, verification_context):
        del verification_context["verification_url"]

        with pytest.raises(NotificationTemplateError, match="verification"):
            renderer.render("verification", verification_context)

    def test_unknown_kind(self, renderer):
        with pytest.raises(NotificationTemplateError):
            renderer.render("newsletter", {})
