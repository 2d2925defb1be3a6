"""Tests for the job catalog."""

import pytest

from jobboard.core.errors import AuthorizationError, JobNotFound, ValidationError
from jobboard.schemas.schemas import JobCreate, JobUpdate
from jobboard.services import job_service
from jobboard.services.mongo_service import AdminLogStore, JobStore

from conftest import make_job, make_user


def _job_create(**overrides) -> JobCreate:
    data = {
        "title": "Data Engineer",
        "description": "Pipelines all day",
        "required_skills": [" Python ", "SQL", "python", ""],
        "company_name": "Acme",
        "recruiter_name": "Rita",
        "location": "Remote - EU",
        "remote": True,
    }
    data.update(overrides)
    return JobCreate(**data)


class TestCreateJob:
    def test_recruiter_creates_with_normalized_skills(self, recruiter):
        job = job_service.create_job(recruiter, _job_create())
        assert job["required_skills"] == ["python", "sql"]
        assert job["recruiter_id"] == str(recruiter["_id"])
        assert job["is_active"] is True

    def test_student_cannot_create(self, student):
        with pytest.raises(AuthorizationError):
            job_service.create_job(student, _job_create())

    def test_admin_cannot_create(self, admin):
        with pytest.raises(AuthorizationError):
            job_service.create_job(admin, _job_create())

    def test_blank_skills_rejected(self, recruiter):
        with pytest.raises(ValidationError):
            job_service.create_job(recruiter, _job_create(required_skills=["  ", ""]))

    def test_blank_title_rejected(self, recruiter):
        with pytest.raises(ValidationError):
            job_service.create_job(recruiter, _job_create(title="   "))


class TestMutations:
    def test_owner_updates_and_skills_renormalized(self, recruiter):
        job = make_job(recruiter)
        updated = job_service.update_job(recruiter, str(job["_id"]), JobUpdate(required_skills=["Go", "GO", "Docker"]))
        assert updated["required_skills"] == ["go", "docker"]
        assert updated["title"] == job["title"]

    def test_other_recruiter_cannot_update(self, recruiter):
        job = make_job(recruiter)
        other = make_user("recruiter", email="other@example.com")
        with pytest.raises(AuthorizationError):
            job_service.update_job(other, str(job["_id"]), JobUpdate(title="Mine now"))

    def test_toggle_active(self, recruiter):
        job = make_job(recruiter)
        assert job_service.toggle_active(recruiter, str(job["_id"]))["is_active"] is False
        assert job_service.toggle_active(recruiter, str(job["_id"]))["is_active"] is True

    def test_owner_delete_not_audited(self, recruiter):
        job = make_job(recruiter)
        job_service.delete_job(recruiter, str(job["_id"]))
        assert JobStore().get(job["_id"]) is None
        assert AdminLogStore().count() == 0

    def test_admin_delete_is_audited(self, recruiter, admin):
        job = make_job(recruiter)
        job_service.delete_job(admin, str(job["_id"]))
        assert JobStore().get(job["_id"]) is None
        logs = AdminLogStore().find()
        assert [log["action"] for log in logs] == ["DELETE_JOB"]
        assert logs[0]["target_id"] == job["_id"]

    def test_student_cannot_delete(self, recruiter, student):
        job = make_job(recruiter)
        with pytest.raises(AuthorizationError):
            job_service.delete_job(student, str(job["_id"]))

    def test_malformed_id_is_not_found(self, recruiter):
        with pytest.raises(JobNotFound):
            job_service.delete_job(recruiter, "not-an-id")


class TestReads:
    def test_inactive_job_hidden_from_others(self, recruiter, student, admin):
        job = make_job(recruiter, is_active=False)
        with pytest.raises(JobNotFound):
            job_service.get_job(str(job["_id"]), student)
        with pytest.raises(JobNotFound):
            job_service.get_job(str(job["_id"]))
        assert job_service.get_job(str(job["_id"]), recruiter)["id"] == str(job["_id"])
        assert job_service.get_job(str(job["_id"]), admin)["id"] == str(job["_id"])

    def test_public_search_only_active(self, recruiter):
        make_job(recruiter, title="Open")
        make_job(recruiter, title="Closed", is_active=False)
        result = job_service.search_jobs()
        assert [j["title"] for j in result["jobs"]] == ["Open"]

    def test_admin_can_include_inactive(self, recruiter, admin, student):
        make_job(recruiter, title="Open")
        make_job(recruiter, title="Closed", is_active=False)
        assert job_service.search_jobs(actor=admin, include_inactive=True)["total"] == 2
        assert job_service.search_jobs(actor=student, include_inactive=True)["total"] == 1

    def test_text_search_is_case_insensitive_and_literal(self, recruiter):
        make_job(recruiter, title="Senior C++ Developer")
        make_job(recruiter, title="Gardener", company_name="Plants Inc")
        assert job_service.search_jobs(q="c++")["total"] == 1
        assert job_service.search_jobs(q="PLANTS")["total"] == 1

    def test_filters(self, recruiter):
        make_job(recruiter, title="A", remote=True, required_skills=["python"])
        make_job(recruiter, title="B", remote=False, required_skills=["java"], location="Paris")
        assert [j["title"] for j in job_service.search_jobs(remote=True)["jobs"]] == ["A"]
        assert [j["title"] for j in job_service.search_jobs(skills=["Java"])["jobs"]] == ["B"]
        assert [j["title"] for j in job_service.search_jobs(location="par")["jobs"]] == ["B"]

    def test_recruiter_sees_own_inactive_jobs(self, recruiter):
        make_job(recruiter, title="Open")
        make_job(recruiter, title="Closed", is_active=False)
        other = make_user("recruiter", email="other@example.com")
        make_job(other, title="Not mine")
        titles = {j["title"] for j in job_service.list_recruiter_jobs(recruiter)["jobs"]}
        assert titles == {"Open", "Closed"}
