"""HTTP-level tests: admin gating, review endpoints, submission intake, OAuth callback."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from modgate.api.auth import decode_state_token, issue_session_token
from modgate.api.routes import auth as auth_routes
from modgate.clients import get_application_store, get_audit_log, get_review_service
from modgate.config import Settings
from modgate.main import app
from modgate.schemas.pydantic import AcceptOutcome, RejectOutcome, SessionUser
from modgate.services.review_service import ERROR_NOT_FOUND
from modgate.tests.fakes import ADMIN_ID, FakeAuditLog

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _row(id, discord_username, discord_id, status="pending"):
    return SimpleNamespace(
        id=id,
        discord_id=discord_id,
        discord_username=discord_username,
        score="7/8",
        total_questions=8,
        correct_answers=7,
        wrong_answers=1,
        status=status,
        reviewed_by=None,
        reviewed_at=None,
        rejection_reason=None,
        review_notes=None,
        created_at=NOW,
        updated_at=NOW,
        conversation_log="Q1: hey i wanna join",
        answers=None,
    )


class StubStore:
    def __init__(self, rows=()):
        self.rows = {r.id: r for r in rows}
        self.inserted = []

    async def list_applications(self, status=None):
        return list(self.rows.values())

    async def get(self, application_id):
        return self.rows.get(application_id)

    async def insert(self, fields):
        self.inserted.append(fields)
        return SimpleNamespace(id=101, **fields)


class StubReviewService:
    def __init__(self):
        self.calls = []
        self.accept_outcome = AcceptOutcome(
            success=True, role_assigned=True, dm_sent=True, status_committed=True, status="accepted"
        )
        self.reject_outcome = RejectOutcome(
            success=True, dm_sent=True, status_committed=True, status="rejected"
        )

    async def accept(self, application_id, reviewer):
        self.calls.append(("accept", application_id, reviewer))
        return self.accept_outcome

    async def reject(self, application_id, reviewer, reason=None):
        self.calls.append(("reject", application_id, reviewer, reason))
        return self.reject_outcome


def _bearer(discord_id=ADMIN_ID, is_admin=True):
    user = SessionUser(discord_id=discord_id, username="bob", global_name="AdminBob", is_admin=is_admin)
    return {"Authorization": f"Bearer {issue_session_token(user)}"}


@pytest.fixture
def stub_store():
    return StubStore([
        _row(1, "Alice", "555666777888"),
        _row(2, "Bruno", "555666777889", status="accepted"),
        _row(3, "test_user", "123"),
    ])


@pytest.fixture
def stub_service():
    return StubReviewService()


@pytest.fixture
def stub_audit():
    return FakeAuditLog()


@pytest.fixture
def client(stub_store, stub_service, stub_audit):
    app.dependency_overrides[get_application_store] = lambda: stub_store
    app.dependency_overrides[get_review_service] = lambda: stub_service
    app.dependency_overrides[get_audit_log] = lambda: stub_audit
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAdminGate:

    def test_no_session_is_401(self, client):
        resp = client.post("/admin/accept/1")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not authenticated"

    def test_non_admin_is_403(self, client, stub_service):
        resp = client.post("/admin/accept/1", headers=_bearer("222222222222222222", is_admin=False))
        assert resp.status_code == 403
        assert stub_service.calls == []

    def test_admin_flag_without_allowlist_is_403(self, client):
        resp = client.get("/admin/api/applications", headers=_bearer("222222222222222222", is_admin=True))
        assert resp.status_code == 403

    def test_garbage_token_is_401(self, client):
        resp = client.get("/admin/api/applications", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestReviewEndpoints:

    def test_accept_returns_camel_case_outcome(self, client, stub_service):
        resp = client.post("/admin/accept/1", headers=_bearer())

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["roleAssigned"] is True
        assert body["dmSent"] is True
        assert body["alreadyProcessed"] is False
        assert stub_service.calls == [("accept", 1, "AdminBob")]

    def test_accept_failure_is_reported_in_body(self, client, stub_service):
        stub_service.accept_outcome = AcceptOutcome(
            success=False, error="cannot process test identity", error_code="test_identity"
        )

        resp = client.post("/admin/accept/3", headers=_bearer())

        assert resp.status_code == 200
        assert resp.json()["errorCode"] == "test_identity"

    def test_accept_unknown_is_404(self, client, stub_service):
        stub_service.accept_outcome = AcceptOutcome(success=False, error_code=ERROR_NOT_FOUND)

        resp = client.post("/admin/accept/999", headers=_bearer())

        assert resp.status_code == 404

    def test_reject_with_reason(self, client, stub_service):
        resp = client.post("/admin/reject/1", json={"reason": "Low score"}, headers=_bearer())

        assert resp.status_code == 200
        assert resp.json()["isTestIdentity"] is False
        assert stub_service.calls == [("reject", 1, "AdminBob", "Low score")]

    def test_reject_without_body(self, client, stub_service):
        resp = client.post("/admin/reject/1", headers=_bearer())

        assert resp.status_code == 200
        assert stub_service.calls == [("reject", 1, "AdminBob", None)]

    def test_reject_unknown_is_404(self, client, stub_service):
        stub_service.reject_outcome = RejectOutcome(success=False, error_code=ERROR_NOT_FOUND)

        assert client.post("/admin/reject/999", headers=_bearer()).status_code == 404


class TestApplicationListing:

    def test_hides_test_identities_by_default(self, client):
        resp = client.get("/admin/api/applications", headers=_bearer())

        assert resp.status_code == 200
        body = resp.json()
        assert [a["discordUsername"] for a in body["applications"]] == ["Alice", "Bruno"]
        assert body["stats"] == {"total": 2, "pending": 1, "accepted": 1, "rejected": 0}

    def test_status_filter_keeps_overall_stats(self, client):
        body = client.get("/admin/api/applications?status=accepted", headers=_bearer()).json()

        assert [a["id"] for a in body["applications"]] == [2]
        assert body["stats"]["total"] == 2

    def test_include_test(self, client):
        body = client.get("/admin/api/applications?include_test=true", headers=_bearer()).json()

        assert body["stats"]["total"] == 3

    def test_invalid_status_is_422(self, client):
        resp = client.get("/admin/api/applications?status=archived", headers=_bearer())
        assert resp.status_code == 422

    def test_single_application(self, client):
        resp = client.get("/admin/api/applications/1", headers=_bearer())

        assert resp.status_code == 200
        assert resp.json()["discordId"] == "555666777888"
        assert client.get("/admin/api/applications/404", headers=_bearer()).status_code == 404

    def test_conversation(self, client):
        resp = client.get("/admin/conversation/1", headers=_bearer())

        assert resp.json() == {"success": True, "conversation": "Q1: hey i wanna join"}
        assert client.get("/admin/conversation/404", headers=_bearer()).status_code == 404


class TestSubmissionIntake:

    def test_submission_is_stored_pending_and_announced(self, client, stub_store, stub_audit):
        resp = client.post("/api/submit", json={
            "discordId": " 555666777888 ",
            "discordUsername": "Alice",
            "score": "7/8",
            "conversationLog": "Q1: hey i wanna join\nA1: what's your age?",
        })

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["applicationId"] == 101
        assert body["submissionId"].startswith("sub_")

        fields = stub_store.inserted[0]
        assert fields["discord_id"] == "555666777888"
        assert (fields["correct_answers"], fields["wrong_answers"], fields["total_questions"]) == (7, 1, 8)
        assert "status" not in fields
        assert stub_audit.records[0][0] == "📝 NEW MOD TEST SUBMISSION"
        assert stub_audit.records[0][2] == "Application #101"

    def test_missing_score_uses_counts(self, client, stub_store):
        client.post("/api/submit", json={
            "discordId": "555666777888",
            "discordUsername": "Alice",
            "totalQuestions": 10,
            "correctAnswers": 6,
        })

        fields = stub_store.inserted[0]
        assert fields["score"] == "6/10"
        assert fields["wrong_answers"] == 4
        assert fields["answers"] == "No conversation log"

    def test_blank_identity_is_422(self, client, stub_store):
        resp = client.post("/api/submit", json={"discordId": "  ", "discordUsername": "Alice"})

        assert resp.status_code == 422
        assert stub_store.inserted == []


class TestDiscordOAuth:

    @pytest.fixture
    def oauth_settings(self, monkeypatch):
        settings = Settings(
            DATABASE_URL="sqlite+aiosqlite://",
            SESSION_SECRET="test-session-secret",
            ADMIN_IDS=ADMIN_ID,
            DISCORD_CLIENT_ID="client-id",
            DISCORD_CLIENT_SECRET="client-secret",
            REDIRECT_URI="https://modgate.test/auth/discord/callback",
        )
        monkeypatch.setattr(auth_routes, "get_settings", lambda: settings)
        return settings

    def _profile(self, monkeypatch, discord_id):
        async def fake_profile(code, settings):
            return {"id": discord_id, "username": "bob", "global_name": "AdminBob"}

        monkeypatch.setattr(auth_routes, "fetch_discord_profile", fake_profile)

    def test_login_redirects_with_signed_state(self, client, oauth_settings):
        resp = client.get("/auth/discord?intent=admin", follow_redirects=False)

        assert resp.status_code == 307
        location = urlparse(resp.headers["location"])
        assert location.netloc == "discord.com"
        query = parse_qs(location.query)
        assert query["client_id"] == ["client-id"]
        assert decode_state_token(query["state"][0], oauth_settings) == "admin"

    def test_admin_callback_sets_session(self, client, oauth_settings, monkeypatch):
        self._profile(monkeypatch, ADMIN_ID)
        state = auth_routes.issue_state_token("admin", oauth_settings)

        resp = client.get(f"/auth/discord/callback?code=abc&state={state}", follow_redirects=False)

        assert resp.status_code == 307
        assert resp.headers["location"] == oauth_settings.admin_dashboard_url
        assert f"{oauth_settings.session_cookie_name}=" in resp.headers["set-cookie"]

    def test_non_admin_admin_intent_is_403(self, client, oauth_settings, monkeypatch):
        self._profile(monkeypatch, "222222222222222222")
        state = auth_routes.issue_state_token("admin", oauth_settings)

        resp = client.get(f"/auth/discord/callback?code=abc&state={state}", follow_redirects=False)

        assert resp.status_code == 403

    def test_test_intent_redirects_to_frontend(self, client, oauth_settings, monkeypatch):
        self._profile(monkeypatch, "555666777888")

        resp = client.get("/auth/discord/callback?code=abc", follow_redirects=False)

        location = urlparse(resp.headers["location"])
        query = parse_qs(location.query)
        assert resp.headers["location"].startswith(oauth_settings.frontend_url)
        assert query["startTest"] == ["1"]
        assert query["discord_id"] == ["555666777888"]

    def test_me_reports_admin(self, client):
        resp = client.get("/auth/me", headers=_bearer())

        assert resp.status_code == 200
        assert resp.json()["isAdmin"] is True
        assert resp.json()["user"]["discordId"] == ADMIN_ID


def test_health_reports_degraded_database(monkeypatch):
    import modgate.main as main

    class DownStore:
        async def ping(self):
            return False

    monkeypatch.setattr(main, "get_application_store", lambda: DownStore())

    resp = TestClient(app).get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["database"] == "error"
    assert "connected" in body["discordBot"]
