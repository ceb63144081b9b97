"""
Tests for the profile, client configuration, dashboard and health endpoints.
"""

from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.exc import OperationalError

from database.models.candidates import CandidateStage
from tests.factories import NOW, make_candidate, make_interview, make_result


class TestMe:
    def test_profile_and_permissions(self, client, login, customer_profile):
        response = client.get("/api/v1/me", headers=login(customer_profile))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(customer_profile.id)
        assert body["role"] == "customer"
        assert "candidates:write" in body["permissions"]
        assert "interviews:delete" not in body["permissions"]

    def test_admin_permissions(self, client, login, admin_profile):
        body = client.get("/api/v1/me", headers=login(admin_profile)).json()
        assert "users:manage" in body["permissions"]

    def test_update(self, client, login, customer_profile, db_session):
        db_session.get.return_value = customer_profile

        response = client.patch(
            "/api/v1/me", json={"full_name": "Hannah Recruiter"}, headers=login(customer_profile)
        )

        assert response.status_code == 200
        assert response.json()["full_name"] == "Hannah Recruiter"
        assert response.json()["company_name"] == "Acme"
        db_session.commit.assert_awaited_once()

    def test_requires_session(self, client):
        assert client.get("/api/v1/me").status_code == 401


class TestClientConfig:
    def test_public(self, client):
        response = client.get("/api/v1/config")

        assert response.status_code == 200
        body = response.json()
        assert body["features"] == {"notifications": True, "interviews": True, "search": True}
        assert body["upload"]["max_file_size_mb"] == 5
        assert body["interviews"]["min_duration"] == 15
        assert body["interviews"]["max_duration"] == 480
        assert body["interviews"]["google_scopes"]
        assert body["search"]["min_query_length"] == 2
        assert body["stages"]

    def test_no_secrets(self, client):
        text = client.get("/api/v1/config").text

        assert "test-jwt-secret" not in text
        assert "test-service-role-key" not in text


class TestDashboard:
    def test_summary(self, client, login, customer_profile, job, db_session):
        recent = make_candidate(job, stage=CandidateStage.SCREENING)
        upcoming = make_interview(recent)
        db_session.execute.side_effect = [
            make_result(scalars=[recent]),
            make_result(scalars=[upcoming]),
            make_result(scalar=3),
            make_result(scalar=2),
            make_result(scalar=14),
            make_result(scalar=1),
        ]

        response = client.get("/api/v1/dashboard", headers=login(customer_profile))

        assert response.status_code == 200
        body = response.json()
        assert body["job_count"] == 3
        assert body["active_job_count"] == 2
        assert body["candidate_count"] == 14
        assert body["hired_count"] == 1
        assert body["recent_candidates"][0]["stage"] == "screening"
        assert body["upcoming_interviews"][0]["id"] == str(upcoming.id)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    def test_root(self, client):
        assert client.get("/").json()["version"] == "0.1.0"

    def test_ready(self, client):
        conn = AsyncMock()
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=conn)
        context.__aexit__ = AsyncMock(return_value=False)

        with patch("api.routes.health.db_engine") as engine:
            engine.connect.return_value = context
            response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "up"}
        conn.execute.assert_awaited_once()

    def test_not_ready(self, client):
        with patch("api.routes.health.db_engine") as engine:
            engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
            response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["database"] == "down"


def test_timestamps_serialized(client, login, customer_profile):
    body = client.get("/api/v1/me", headers=login(customer_profile)).json()
    assert body["created_at"].startswith(NOW.date().isoformat())
