"""Tests for job service functions."""

import uuid

import pytest

from api.schemas.common import PaginationParams
from api.schemas.jobs import JobCreate, JobUpdate
from api.services import jobs as job_service
from core.exceptions import NotFoundError
from database.models.audit import AuditLog
from database.models.jobs import EmploymentType, Job, JobStatus
from database.models.profiles import ProfileRole
from tests.factories import added_of, make_job, make_profile, make_result, mock_session


@pytest.fixture
def customer():
    return make_profile(ProfileRole.CUSTOMER)


class TestJobLookup:
    @pytest.mark.asyncio
    async def test_not_found(self, customer):
        db = mock_session(make_result(scalar=None))

        with pytest.raises(NotFoundError, match="Job not found"):
            await job_service.get_job_for_actor(db, customer, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_get_job_with_count(self, customer):
        job = make_job(customer)
        db = mock_session(make_result(scalar=job), make_result(scalar=4))

        result = await job_service.get_job(db, customer, job.id)

        assert result["id"] == job.id
        assert result["candidate_count"] == 4
        assert result["status"] == JobStatus.ACTIVE


class TestListJobs:
    @pytest.mark.asyncio
    async def test_rows_with_counts(self, customer):
        first, second = make_job(customer), make_job(customer, title="Designer")
        db = mock_session(make_result(scalar=2), make_result(rows=[(first, 3), (second, 0)]))

        result = await job_service.list_jobs(db, customer, PaginationParams(), status=JobStatus.ACTIVE)

        assert result["total"] == 2
        assert [(item["title"], item["candidate_count"]) for item in result["items"]] == [
            ("Backend Engineer", 3), ("Designer", 0),
        ]

    @pytest.mark.asyncio
    async def test_admin_sees_every_tenant(self):
        admin = make_profile(ProfileRole.ADMIN)
        db = mock_session(make_result(scalar=0), make_result(rows=[]))

        await job_service.list_jobs(db, admin, PaginationParams())

        count_statement = db.execute.await_args_list[0].args[0]
        assert "customer_id" not in str(count_statement)


class TestCreateJob:
    @pytest.mark.asyncio
    async def test_create(self, customer):
        db = mock_session()
        data = JobCreate(
            title="  Data Engineer ",
            description="Pipelines<script>x()</script>",
            employment_type=EmploymentType.FULL_TIME,
        )

        result = await job_service.create_job(db, customer, data)

        job = added_of(db, Job)[0]
        assert job.customer_id == customer.id
        assert job.title == "Data Engineer"
        assert job.description == "Pipelines"
        assert result["id"] == job.id
        assert result["candidate_count"] == 0
        assert added_of(db, AuditLog)[0].details == {"title": "Data Engineer"}
        db.commit.assert_awaited_once()


class TestUpdateJob:
    @pytest.mark.asyncio
    async def test_close_job(self, customer):
        job = make_job(customer)
        db = mock_session(make_result(scalar=job), make_result(scalar=1))

        result = await job_service.update_job(
            db, customer, job.id, JobUpdate(status=JobStatus.CLOSED, title=None)
        )

        assert result["status"] == JobStatus.CLOSED
        assert result["title"] == "Backend Engineer"


class TestDeleteJob:
    @pytest.mark.asyncio
    async def test_delete(self, customer):
        job = make_job(customer)
        db = mock_session(make_result(scalar=job))

        await job_service.delete_job(db, customer, job.id)

        db.delete.assert_awaited_once_with(job)
        assert added_of(db, AuditLog)[0].action == "DELETE"
