"""Tests for the tool and dashboard routes."""

import httpx
import pytest
from fastapi.testclient import TestClient

from jobdash.core.config import Settings
from jobdash.core.exceptions import UnexpectedError
from jobdash.main import create_app
from jobdash.services.captcha_resolver import CaptchaResolver
from jobdash.services.dependencies import get_captcha_resolver
from jobdash.services.tracking_store import ApplicationTrackingStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def attempt_payload(**overrides):
    payload = {
        "platform": "linkedin",
        "company": "Acme",
        "title": "Engineer",
        "url": "https://linkedin.example.com/jobs/1",
        "status": "applied",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def app_settings(database_url):
    return Settings(
        _env_file=None,
        database_url=database_url,
        twocaptcha_api_key=None,
    )


@pytest.fixture
def app(app_settings, clock):
    store = ApplicationTrackingStore(app_settings.database_url, clock=clock)
    return create_app(app_settings, store)


@pytest.fixture
def client(app):
    """Test client with the lifespan (store initialization) running."""
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    """Tests for the health endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store_initialized"] is True
        assert data["captcha_configured"] is False

    def test_activation_is_logged(self, client):
        logs = client.get("/api/logs").json()
        assert logs[-1]["message"] == "Job Dashboard activated"


class TestLogApplicationTool:
    """Tests for /tools/log_application."""

    def test_log_application(self, client):
        response = client.post(
            "/tools/log_application",
            json=attempt_payload(
                coverLetter="Dear hiring manager, I would love to join Acme.",
                screenshotPath="/tmp/shot.png",
            ),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Logged: applied — Acme - Engineer"
        assert data["application"]["cover_letter"].startswith("Dear hiring manager")
        assert data["application"]["screenshot_path"] == "/tmp/shot.png"

    def test_duplicate_returns_result(self, client):
        client.post("/tools/log_application", json=attempt_payload())
        response = client.post("/tools/log_application", json=attempt_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_kind"] == "duplicate"

    def test_invalid_platform_rejected(self, client):
        response = client.post(
            "/tools/log_application", json=attempt_payload(platform="monster")
        )
        assert response.status_code == 422

    def test_invalid_status_rejected(self, client):
        response = client.post(
            "/tools/log_application", json=attempt_payload(status="pending")
        )
        assert response.status_code == 422


class TestCheckAppliedTool:
    """Tests for /tools/check_applied."""

    def test_not_applied(self, client):
        response = client.post(
            "/tools/check_applied", json={"url": "https://linkedin.example.com/jobs/1"}
        )
        assert response.json() == {
            "alreadyApplied": False,
            "message": "Not yet applied. Proceed with application.",
        }

    def test_already_applied(self, client):
        client.post("/tools/log_application", json=attempt_payload())

        response = client.post(
            "/tools/check_applied", json={"company": "Acme", "title": "Engineer"}
        )

        data = response.json()
        assert data["alreadyApplied"] is True
        assert data["message"] == "Already applied to this job. Skip it."


class TestDailyStatsTool:
    """Tests for /tools/get_daily_stats."""

    def test_no_applications_today(self, client):
        data = client.post("/tools/get_daily_stats").json()
        assert data["date"] == "2026-10-17"
        assert data["total_attempted"] == 0
        assert data["message"] == "No applications today yet."

    def test_with_applications(self, client):
        client.post("/tools/log_application", json=attempt_payload())
        client.post(
            "/tools/log_application",
            json=attempt_payload(url="https://x.example.com/2", status="skipped"),
        )

        data = client.post("/tools/get_daily_stats").json()
        assert data["total_attempted"] == 2
        assert data["message"] == (
            "Today: 1 applied, 0 failed, 1 skipped (2 total attempts)"
        )

    def test_database_error_answers_with_result(self, app, client, monkeypatch):
        async def failing_daily_stats(day=None):
            raise UnexpectedError("Database error: disk I/O error")

        monkeypatch.setattr(app.state.store, "get_daily_stats", failing_daily_stats)

        response = client.post("/tools/get_daily_stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total_attempted"] == 0
        assert data["error"] == "Database error: disk I/O error"
        assert data["message"] == "Database error: disk I/O error"


class TestSolveCaptchaTool:
    """Tests for /tools/solve_captcha."""

    def test_without_credential(self, client):
        response = client.post(
            "/tools/solve_captcha",
            json={
                "type": "recaptcha_v2",
                "siteKey": "site",
                "pageUrl": "https://example.com/apply",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_kind"] == "configuration"

    def test_with_resolver_override(self, app, fake_time):
        def service(request):
            if request.url.path.endswith("/in.php"):
                return httpx.Response(200, json={"status": 1, "request": "7"})
            return httpx.Response(200, json={"status": 1, "request": "tok-7"})

        async def resolver_override():
            resolver = CaptchaResolver(
                "key",
                app.state.store,
                client=httpx.AsyncClient(transport=httpx.MockTransport(service)),
                sleep=fake_time.sleep,
                clock=fake_time.clock,
            )
            try:
                yield resolver
            finally:
                await resolver.client.aclose()

        app.dependency_overrides[get_captcha_resolver] = resolver_override
        with TestClient(app) as client:
            response = client.post(
                "/tools/solve_captcha",
                json={"type": "hcaptcha", "siteKey": "s", "pageUrl": "https://e.com"},
            )

            assert response.json()["token"] == "tok-7"
            logs = client.get("/api/logs", params={"limit": 1}).json()
            assert logs[0]["message"] == "CAPTCHA solved successfully"

    def test_unknown_type_rejected(self, client):
        response = client.post(
            "/tools/solve_captcha",
            json={"type": "turnstile", "siteKey": "s", "pageUrl": "https://e.com"},
        )
        assert response.status_code == 422


class TestDashboardRoutes:
    """Tests for the reporting API."""

    def test_list_applications_filtered(self, client):
        for n in range(5):
            client.post(
                "/tools/log_application",
                json=attempt_payload(url=f"https://linkedin.example.com/{n}"),
            )
        for n in range(2):
            client.post(
                "/tools/log_application",
                json=attempt_payload(platform="indeed", url=f"https://indeed.example.com/{n}"),
            )

        response = client.get(
            "/api/applications", params={"platform": "linkedin", "limit": 1}
        )

        data = response.json()
        assert response.status_code == 200
        assert len(data["items"]) == 1
        assert data["total"] == 5

    def test_get_application(self, client):
        created = client.post("/tools/log_application", json=attempt_payload()).json()
        app_id = created["application"]["id"]

        response = client.get(f"/api/applications/{app_id}")
        assert response.status_code == 200
        assert response.json()["url"] == "https://linkedin.example.com/jobs/1"

    def test_get_application_not_found(self, client):
        response = client.get("/api/applications/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Application not found"

    def test_summary_stats(self, client):
        for n, status in enumerate(["applied", "failed", "applied"]):
            client.post(
                "/tools/log_application",
                json=attempt_payload(
                    platform="indeed", url=f"https://i.example.com/{n}", status=status
                ),
            )

        data = client.get("/api/stats").json()
        assert data["by_platform"] == [{"platform": "indeed", "count": 2}]
        assert data["total"] == {"applied": 2, "failed": 1, "skipped": 0}
        assert data["today"]["total_attempted"] == 3

    def test_daily_stats(self, client):
        client.post("/tools/log_application", json=attempt_payload())

        data = client.get("/api/stats/daily", params={"days": 7}).json()
        assert len(data) == 1
        assert data[0]["date"] == "2026-10-17"

    def test_daily_stats_rejects_bad_window(self, client):
        response = client.get("/api/stats/daily", params={"days": 0})
        assert response.status_code == 400

    def test_logs_pagination(self, client):
        client.post("/tools/log_application", json=attempt_payload())

        logs = client.get("/api/logs", params={"limit": 1, "offset": 0}).json()
        assert len(logs) == 1
        assert logs[0]["message"] == "Application applied: Acme - Engineer"


class TestScreenshots:
    """Tests for serving screenshots."""

    def test_serves_png(self, client, tmp_path):
        shot = tmp_path / "shot.png"
        shot.write_bytes(PNG_BYTES)
        created = client.post(
            "/tools/log_application", json=attempt_payload(screenshotPath=str(shot))
        ).json()

        response = client.get(f"/api/screenshots/{created['application']['id']}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == PNG_BYTES

    def test_missing_file(self, client, tmp_path):
        created = client.post(
            "/tools/log_application",
            json=attempt_payload(screenshotPath=str(tmp_path / "gone.jpg")),
        ).json()

        response = client.get(f"/api/screenshots/{created['application']['id']}")
        assert response.status_code == 404

    def test_no_screenshot(self, client):
        created = client.post("/tools/log_application", json=attempt_payload()).json()

        response = client.get(f"/api/screenshots/{created['application']['id']}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Screenshot not found"

    def test_outside_screenshots_dir(self, database_url, clock, tmp_path):
        """Test files outside the configured directory are not served."""
        allowed = tmp_path / "screens"
        allowed.mkdir()
        outside = tmp_path / "secret.png"
        outside.write_bytes(PNG_BYTES)
        settings = Settings(
            _env_file=None, database_url=database_url, screenshots_dir=str(allowed)
        )
        app = create_app(
            settings, ApplicationTrackingStore(database_url, clock=clock)
        )

        with TestClient(app) as client:
            created = client.post(
                "/tools/log_application",
                json=attempt_payload(screenshotPath=str(outside)),
            ).json()
            response = client.get(f"/api/screenshots/{created['application']['id']}")

        assert response.status_code == 404
