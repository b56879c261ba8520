"""
Tests for the admin jobs endpoints.
"""

from unittest.mock import AsyncMock

import pytest
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core import scheduler
from app.core.auth import AdminUser, get_current_admin_user
from app.core.scheduler import register_job
from app.modules.jobs.router import router as jobs_router


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(scheduler, "_job_registry", {})
    monkeypatch.setattr(scheduler, "_scheduler", None)

    app = FastAPI()
    app.include_router(jobs_router, prefix="/admin/jobs")
    app.dependency_overrides[get_current_admin_user] = lambda: AdminUser(
        id="00000000-0000-0000-0000-000000000001", email="admin@sam.dev", role="admin"
    )
    return TestClient(app)


class TestJobsRouter:
    def test_lists_registered_jobs(self, client):
        register_job("exports_cleanup", AsyncMock(), CronTrigger(hour=3, minute=0))

        response = client.get("/admin/jobs")

        assert response.status_code == 200
        assert [job["job_id"] for job in response.json()["jobs"]] == ["exports_cleanup"]

    def test_trigger_runs_job(self, client):
        job = AsyncMock()
        register_job("exports_cleanup", job, CronTrigger(hour=3, minute=0))

        response = client.post("/admin/jobs/exports_cleanup/trigger")

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        job.assert_awaited_once()

    def test_trigger_unknown_job(self, client):
        response = client.post("/admin/jobs/missing/trigger")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "JOB_NOT_FOUND"
