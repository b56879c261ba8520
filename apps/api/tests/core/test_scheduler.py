"""
Unit tests for job registration and manual triggering.
"""

from unittest.mock import AsyncMock

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from app.core import scheduler
from app.core.scheduler import list_registered_jobs, register_job, trigger_job_manually


@pytest.fixture(autouse=True)
def isolated_registry(monkeypatch):
    monkeypatch.setattr(scheduler, "_job_registry", {})
    monkeypatch.setattr(scheduler, "_scheduler", None)


class TestRegistry:
    def test_registered_jobs_are_listed(self):
        register_job("cleanup", AsyncMock(), IntervalTrigger(hours=1))

        jobs = list_registered_jobs()

        assert [job["job_id"] for job in jobs] == ["cleanup"]
        assert jobs[0]["next_run_time"] is None

    @pytest.mark.asyncio
    async def test_manual_trigger_runs_job(self):
        job = AsyncMock()
        register_job("cleanup", job, IntervalTrigger(hours=1))

        result = await trigger_job_manually("cleanup")

        job.assert_awaited_once()
        assert result["status"] == "success"

    @pytest.mark.asyncio
    async def test_manual_trigger_reports_failure(self):
        register_job("broken", AsyncMock(side_effect=RuntimeError("boom")), IntervalTrigger(hours=1))

        result = await trigger_job_manually("broken")

        assert result["status"] == "error"
        assert result["error"] == "boom"

    @pytest.mark.asyncio
    async def test_unknown_job(self):
        with pytest.raises(ValueError):
            await trigger_job_manually("missing")
