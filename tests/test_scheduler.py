"""Tests for the scheduler service."""

import pytest

from polyarb.core.config import Settings
from polyarb.services.scheduler import SchedulerService


async def _job():
    return None


@pytest.fixture
def service():
    return SchedulerService(settings=Settings(_env_file=None, timezone="UTC"))


class TestSchedulerService:
    """Tests for job registration."""

    def test_interval_job_never_overlaps(self, service):
        job_id = service.add_interval_job("scan", _job, seconds=30, run_immediately=False)

        job = service.scheduler.get_job(job_id)
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval.total_seconds() == 30

    def test_run_immediately_sets_first_run(self, service):
        service.add_interval_job("scan", _job, seconds=30)

        assert service.scheduler.get_job("scan").next_run_time is not None

    def test_get_jobs_before_start(self, service):
        service.add_interval_job("scan", _job, seconds=30, run_immediately=False)

        assert service.get_jobs() == [{"id": "scan", "name": "scan", "next_run": None}]

    def test_remove_job(self, service):
        service.add_interval_job("scan", _job, seconds=30, run_immediately=False)

        assert service.remove_job("scan") is True
        assert service.remove_job("scan") is False
        assert service.get_jobs() == []
