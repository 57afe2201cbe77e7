"""HTTP API tests using FastAPI's TestClient over an in-memory database."""

from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import WebSocketDisconnect
from starlette.status import WS_1008_POLICY_VIOLATION
from fastapi.testclient import TestClient

from skillbridge.api import build_services, create_app
from skillbridge.auth.exceptions import EMAIL_ALREADY_REGISTERED, INVALID_CREDENTIALS, SESSION_EXPIRED
from skillbridge.config.environment import EnvironmentConfig
from skillbridge.domain.models import MembershipTier
from skillbridge.notifications import NotificationResult
from skillbridge.storage import UploadResult
from tests.helpers import TEST_PASSWORD, create_category, create_job, create_member

RECIPIENT = "payments@skillbridge.example"
CDN_URL = "https://res.cloudinary.com/demo/raw/upload/v1/submissions/work.pdf"


@pytest.fixture
def notifier():
    mock = Mock()
    mock.send_verification_email.return_value = NotificationResult(
        kind="verification", recipient="new@example.com", attempts=1, status="sent"
    )
    mock.send_submission_reviewed.return_value = NotificationResult(
        kind="submission_reviewed", recipient="ada@example.com", attempts=1, status="sent"
    )
    return mock


@pytest.fixture
def uploader():
    mock = Mock()
    mock.upload.return_value = UploadResult(url=CDN_URL)
    return mock


@pytest.fixture
def env_config():
    return EnvironmentConfig(database_url="sqlite://", paypal_recipient=RECIPIENT)


@pytest.fixture
def client(database, app_config, env_config, notifier, uploader):
    services = build_services(app_config, env_config, notifier=notifier, uploader=uploader)
    with TestClient(create_app(services)) as test_client:
        yield test_client


def sign_in(client, email):
    response = client.post("/api/v1/auth/signin", json={"email": email, "password": TEST_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def member_headers(client):
    create_member(email="ada@example.com", tier=MembershipTier.PRO)
    return sign_in(client, "ada@example.com")


@pytest.fixture
def admin_headers(client):
    create_member(email="admin@example.com", admin=True)
    return sign_in(client, "admin@example.com")


def sign_up_form(**overrides):
    form = {
        "full_name": "New Member",
        "email": "new@example.com",
        "password": TEST_PASSWORD,
        "confirm_password": TEST_PASSWORD,
        "accept_terms": True,
    }
    form.update(overrides)
    return form


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.headers["X-Request-ID"]

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


class TestAuthRoutes:
    def test_sign_up_sends_verification(self, client, notifier):
        response = client.post("/api/v1/auth/signup", json=sign_up_form())

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "new@example.com"
        assert body["verification_sent"] is True
        assert body["session"] is None
        assert body["message"] == "Please check your email to verify your account."
        notifier.send_verification_email.assert_called_once()

    def test_sign_up_validation_errors(self, client):
        response = client.post("/api/v1/auth/signup", json=sign_up_form(password="short", accept_terms=False))

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert set(errors) >= {"password", "confirm_password", "accept_terms"}

    def test_duplicate_sign_up(self, client):
        client.post("/api/v1/auth/signup", json=sign_up_form())

        response = client.post("/api/v1/auth/signup", json=sign_up_form(email="NEW@example.com"))

        assert response.status_code == 409
        assert response.json()["detail"] == EMAIL_ALREADY_REGISTERED

    def test_unconfirmed_sign_in_then_callback(self, client, notifier):
        client.post("/api/v1/auth/signup", json=sign_up_form())

        blocked = client.post(
            "/api/v1/auth/signin", json={"email": "new@example.com", "password": TEST_PASSWORD}
        )
        assert blocked.status_code == 403

        url = notifier.send_verification_email.call_args[0][2]
        query = parse_qs(urlparse(url).query)
        callback = client.get(
            "/api/v1/auth/callback", params={"token": query["token"][0], "type": query["type"][0]}
        )

        assert callback.status_code == 200
        body = callback.json()
        assert body["status"] == "success"
        assert body["session"]["token_type"] == "bearer"
        assert sign_in(client, "new@example.com")

    def test_callback_without_token(self, client):
        body = client.get("/api/v1/auth/callback").json()

        assert body["status"] == "error"
        assert body["session"] is None

    def test_wrong_password(self, client):
        create_member(email="ada@example.com")

        response = client.post(
            "/api/v1/auth/signin", json={"email": "ada@example.com", "password": "Wrong123"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == INVALID_CREDENTIALS

    def test_current_session(self, client, member_headers):
        response = client.get("/api/v1/auth/session", headers=member_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["email_confirmed"] is True
        assert body["profile"]["membership_tier"] == "pro"
        assert body["roles"] == ["user"]
        assert body["is_admin"] is False

    def test_session_requires_token(self, client):
        missing = client.get("/api/v1/auth/session")
        unknown = client.get("/api/v1/auth/session", headers={"Authorization": "Bearer nope"})

        assert missing.status_code == 401
        assert missing.json()["detail"] == "Authentication required"
        assert unknown.status_code == 401
        assert unknown.json()["detail"] == SESSION_EXPIRED

    def test_sign_out(self, client, member_headers):
        assert client.post("/api/v1/auth/signout", headers=member_headers).status_code == 200
        assert client.post("/api/v1/auth/signout").status_code == 200

        assert client.get("/api/v1/auth/session", headers=member_headers).status_code == 401

    def test_refresh_rotates_tokens(self, client):
        create_member(email="ada@example.com")
        session = client.post(
            "/api/v1/auth/signin", json={"email": "ada@example.com", "password": TEST_PASSWORD}
        ).json()

        refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": session["refresh_token"]})

        assert refreshed.status_code == 200
        assert refreshed.json()["access_token"] != session["access_token"]
        reused = client.post("/api/v1/auth/refresh", json={"refresh_token": session["refresh_token"]})
        assert reused.status_code == 401

    def test_resend(self, client):
        response = client.post("/api/v1/auth/resend", json={"email": "nobody@example.com"})
        blank = client.post("/api/v1/auth/resend", json={})

        assert response.status_code == 200
        assert blank.status_code == 400


class TestMarketplaceRoutes:
    def test_browse_and_detail(self, client, member_headers):
        design = create_category("Design")
        open_job = create_job("Logo design", category_id=design.id)
        vip_job = create_job("VIP work", required_tier=MembershipTier.VIP)

        listings = client.get("/api/v1/jobs", headers=member_headers).json()
        access = {listing["job"]["id"]: listing["is_accessible"] for listing in listings}
        assert access == {open_job.id: True, vip_job.id: False}

        filtered = client.get("/api/v1/jobs", params={"category": "Design"}, headers=member_headers).json()
        assert [listing["job"]["title"] for listing in filtered] == ["Logo design"]

        detail = client.get(f"/api/v1/jobs/{open_job.id}", headers=member_headers).json()
        assert detail["can_submit"] is True
        assert detail["job"]["category_name"] == "Design"

    def test_board_requires_sign_in(self, client):
        assert client.get("/api/v1/jobs").status_code == 401

    def test_missing_job(self, client, member_headers):
        response = client.get("/api/v1/jobs/missing", headers=member_headers)

        assert response.status_code == 404

    def test_submit_text_then_duplicate(self, client, member_headers):
        job = create_job(payment_amount=12.5)

        created = client.post(
            f"/api/v1/jobs/{job.id}/submissions", data={"content": "My answer"}, headers=member_headers
        )
        again = client.post(
            f"/api/v1/jobs/{job.id}/submissions", data={"content": "Again"}, headers=member_headers
        )

        assert created.status_code == 201
        assert created.json()["status"] == "pending"
        assert created.json()["payment_amount"] == 12.5
        assert again.status_code == 409

        history = client.get("/api/v1/submissions", headers=member_headers).json()
        assert history["stats"]["pending"] == 1
        assert [s["job_id"] for s in history["submissions"]] == [job.id]

    def test_submit_file(self, client, member_headers, uploader):
        job = create_job()

        response = client.post(
            f"/api/v1/jobs/{job.id}/submissions",
            files={"file": ("work.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=member_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["file_url"] == CDN_URL
        assert body["file_name"] == "work.pdf"
        assert body["file_size"] == len(b"%PDF-1.4 test")
        upload = uploader.upload.call_args[0][0]
        assert upload.filename == "work.pdf"
        assert upload.content_type == "application/pdf"

    def test_submit_requires_content(self, client, member_headers):
        job = create_job()

        response = client.post(f"/api/v1/jobs/{job.id}/submissions", headers=member_headers)

        assert response.status_code == 400

    def test_submit_blocked_without_membership(self, client):
        create_member(email="free@example.com", tier=MembershipTier.NONE)
        headers = sign_in(client, "free@example.com")
        job = create_job()

        response = client.post(
            f"/api/v1/jobs/{job.id}/submissions", data={"content": "Work"}, headers=headers
        )

        assert response.status_code == 403

    def test_unknown_status_filter(self, client, member_headers):
        response = client.get("/api/v1/submissions", params={"status": "lost"}, headers=member_headers)

        assert response.status_code == 400

    def test_plans_and_categories_are_public(self, client):
        create_category("Writing")

        plans = client.get("/api/v1/plans").json()
        categories = client.get("/api/v1/categories").json()

        assert [plan["key"] for plan in plans] == ["regular", "pro", "vip"]
        assert plans[0]["currency"] == "USD"
        assert [c["name"] for c in categories] == ["Writing"]


class TestSubmissionStream:
    URL = "/api/v1/submissions/live"

    def test_pushes_history_after_each_change(self, client, member_headers, admin_headers):
        job = create_job("Logo design", payment_amount=12.5)

        with client.websocket_connect(self.URL, headers=member_headers) as websocket:
            initial = websocket.receive_json()
            assert initial["submissions"] == []
            assert initial["stats"]["total"] == 0

            client.post(
                f"/api/v1/jobs/{job.id}/submissions", data={"content": "My answer"}, headers=member_headers
            )
            created = websocket.receive_json()
            assert [s["job_title"] for s in created["submissions"]] == ["Logo design"]
            assert created["stats"]["pending"] == 1

            assert client.delete(f"/api/v1/admin/jobs/{job.id}", headers=admin_headers).status_code == 200
            removed = websocket.receive_json()
            assert removed["submissions"] == []

    def test_other_members_changes_are_not_pushed(self, client, member_headers):
        create_member(email="grace@example.com", tier=MembershipTier.PRO)
        other_headers = sign_in(client, "grace@example.com")
        first, second = create_job("First"), create_job("Second")

        with client.websocket_connect(self.URL, headers=member_headers) as websocket:
            websocket.receive_json()
            client.post(f"/api/v1/jobs/{first.id}/submissions", data={"content": "Theirs"}, headers=other_headers)
            client.post(f"/api/v1/jobs/{second.id}/submissions", data={"content": "Mine"}, headers=member_headers)

            update = websocket.receive_json()
            assert [s["job_title"] for s in update["submissions"]] == ["Second"]

    def test_token_in_query_string(self, client, member_headers):
        token = member_headers["Authorization"].split(" ", 1)[1]

        with client.websocket_connect(f"{self.URL}?access_token={token}") as websocket:
            assert websocket.receive_json()["submissions"] == []

    def test_rejects_missing_token(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(self.URL):
                pass

        assert exc_info.value.code == WS_1008_POLICY_VIOLATION


class TestCheckoutRoutes:
    def test_checkout(self, client, member_headers):
        response = client.post("/api/v1/checkout", json={"plan": "vip"}, headers=member_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["plan"] == "vip"
        assert body["recipient"] == RECIPIENT
        assert body["payment_link"].startswith("https://www.paypal.com/send?")
        assert body["membership_updated"] is True
        assert body["transaction"]["status"] == "pending"

    def test_unknown_plan(self, client, member_headers):
        response = client.post("/api/v1/checkout", json={"plan": "gold"}, headers=member_headers)

        assert response.status_code == 400

    def test_missing_recipient(self, database, app_config, notifier, uploader):
        services = build_services(
            app_config, EnvironmentConfig(database_url="sqlite://"), notifier=notifier, uploader=uploader
        )
        with TestClient(create_app(services)) as client:
            create_member(email="ada@example.com")
            headers = sign_in(client, "ada@example.com")

            response = client.post("/api/v1/checkout", json={"plan": "pro"}, headers=headers)

        assert response.status_code == 503


class TestAdminRoutes:
    def test_requires_admin_role(self, client, member_headers):
        assert client.get("/api/v1/admin/stats", headers=member_headers).status_code == 403
        assert client.get("/api/v1/admin/stats").status_code == 401

    def test_job_lifecycle(self, client, admin_headers, uploader):
        category = create_category("Design")

        created = client.post(
            "/api/v1/admin/jobs",
            data={
                "title": "Logo design",
                "description": "Design a logo",
                "payment_amount": "15",
                "required_tier": "pro",
                "category_id": category.id,
                "max_submissions": "5",
            },
            files={"file": ("brief.pdf", b"%PDF", "application/pdf")},
            headers=admin_headers,
        )
        assert created.status_code == 201
        job = created.json()
        assert job["required_tier"] == "pro"
        assert job["category_name"] == "Design"
        assert job["job_file_url"] == CDN_URL

        updated = client.put(
            f"/api/v1/admin/jobs/{job['id']}",
            data={"title": "Bakery logo", "description": "Design a logo", "payment_amount": "20"},
            headers=admin_headers,
        )
        assert updated.json()["title"] == "Bakery logo"
        assert updated.json()["job_file_url"] == CDN_URL

        toggled = client.post(f"/api/v1/admin/jobs/{job['id']}/toggle", headers=admin_headers)
        assert toggled.json()["is_active"] is False

        assert client.get("/api/v1/admin/stats", headers=admin_headers).json()["active_jobs"] == 0

        deleted = client.delete(f"/api/v1/admin/jobs/{job['id']}", headers=admin_headers)
        assert deleted.json()["message"] == "Job deleted successfully"
        assert client.get("/api/v1/admin/jobs", headers=admin_headers).json() == []

    def test_invalid_job_form(self, client, admin_headers):
        response = client.post(
            "/api/v1/admin/jobs",
            data={"title": "Logo", "description": "Design", "payment_amount": "-5"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_review_flow(self, client, admin_headers, member_headers, notifier):
        job = create_job("Logo design", payment_amount=10)
        submission = client.post(
            f"/api/v1/jobs/{job.id}/submissions", data={"content": "Done"}, headers=member_headers
        ).json()

        listed = client.get(
            "/api/v1/admin/submissions", params={"search": "ada@"}, headers=admin_headers
        ).json()
        assert [s["id"] for s in listed] == [submission["id"]]

        reviewed = client.post(
            f"/api/v1/admin/submissions/{submission['id']}/review",
            json={"status": "approved", "feedback": "Great"},
            headers=admin_headers,
        )
        assert reviewed.status_code == 200
        assert reviewed.json()["status"] == "approved"
        notifier.send_submission_reviewed.assert_called_once()

        again = client.post(
            f"/api/v1/admin/submissions/{submission['id']}/review",
            json={"status": "rejected"},
            headers=admin_headers,
        )
        assert again.status_code == 409

        profile = client.get("/api/v1/auth/session", headers=member_headers).json()["profile"]
        assert profile["approved_earnings"] == 10

    def test_categories(self, client, admin_headers):
        created = client.post("/api/v1/admin/categories", json={"name": "Design"}, headers=admin_headers)
        duplicate = client.post("/api/v1/admin/categories", json={"name": "Design"}, headers=admin_headers)

        assert created.status_code == 201
        assert duplicate.status_code == 409

    def test_confirm_transaction(self, client, admin_headers, member_headers):
        started = client.post("/api/v1/checkout", json={"plan": "regular"}, headers=member_headers).json()
        transaction_id = started["transaction"]["id"]

        confirmed = client.post(
            f"/api/v1/admin/transactions/{transaction_id}/confirm", headers=admin_headers
        )
        twice = client.post(f"/api/v1/admin/transactions/{transaction_id}/confirm", headers=admin_headers)

        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "completed"
        assert twice.status_code == 409
