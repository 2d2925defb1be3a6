"""Tests for resume upload, download and recommendations (through the HTTP layer)."""

import threading

import pytest

from jobboard.core.config import get_settings
from jobboard.services import application_service
from jobboard.services.mongo_service import UserStore

from conftest import auth_headers, make_job, make_user


def _upload(client, user, filename="cv.pdf", content=b"%PDF-1.4 resume"):
    return client.post(
        "/api/resumes/upload",
        files={"resume": (filename, content, "application/octet-stream")},
        headers=auth_headers(user),
    )


@pytest.fixture()
def old_resume(upload_dir, student):
    path = upload_dir / student["resume_ref"]
    path.write_bytes(b"old resume")
    return path


class TestUploadRejections:
    def test_unsupported_type_touches_nothing(self, client, student, upload_dir, fake_ml):
        resp = _upload(client, student, filename="virus.exe")
        assert resp.status_code == 400
        assert resp.json()["code"] == "unsupported_file_type"
        assert list(upload_dir.iterdir()) == []
        assert fake_ml.parse_calls == []
        assert UserStore().get_by_id(student["_id"])["resume_ref"] == "111-abc-cv.pdf"

    def test_too_large(self, client, student, upload_dir, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_upload_mb", 1)
        resp = _upload(client, student, content=b"x" * (1024 * 1024 + 1))
        assert resp.status_code == 413
        assert list(upload_dir.iterdir()) == []

    def test_empty_file(self, client, student):
        resp = _upload(client, student, content=b"")
        assert resp.status_code == 400

    def test_parser_failure_leaves_user_untouched(self, client, student, upload_dir, fake_ml):
        fake_ml.fail = True
        resp = _upload(client, student)
        assert resp.status_code == 502
        assert list(upload_dir.iterdir()) == []
        user = UserStore().get_by_id(student["_id"])
        assert user["resume_ref"] == "111-abc-cv.pdf"
        assert user["skills"] == ["Python", "Java"]

    def test_requires_login(self, client):
        resp = client.post("/api/resumes/upload", files={"resume": ("cv.pdf", b"data")})
        assert resp.status_code == 401


class TestUploadSuccess:
    def test_skills_replaced_and_old_file_removed(self, client, student, old_resume, fake_ml):
        fake_ml.skills = ["Go", " Docker ", ""]
        resp = _upload(client, student, filename="../../my cv.pdf")
        assert resp.status_code == 200
        body = resp.json()
        assert body["skills"] == ["Go", "Docker"]
        assert body["resume_ref"].endswith("-my_cv.pdf")
        assert "/" not in body["resume_ref"]

        user = UserStore().get_by_id(student["_id"])
        assert user["skills"] == ["Go", "Docker"]
        assert user["resume_ref"] == body["resume_ref"]
        assert not old_resume.exists()

    def test_old_file_kept_when_an_application_references_it(self, client, student, recruiter, old_resume):
        job = make_job(recruiter)
        application_service.create_application(student, str(job["_id"]))
        resp = _upload(client, student)
        assert resp.status_code == 200
        assert old_resume.exists()

    def test_download_own_resume(self, client, student, old_resume):
        resp = client.get("/api/resumes/me", headers=auth_headers(student))
        assert resp.status_code == 200
        assert resp.content == b"old resume"

    def test_download_missing_resume(self, client):
        user = make_user("student", email="nores@example.com")
        resp = client.get("/api/resumes/me", headers=auth_headers(user))
        assert resp.status_code == 404


class TestSlowParser:
    def test_other_requests_are_served_while_parsing(self, client, student, fake_ml, monkeypatch):
        entered = threading.Event()
        gate = threading.Event()
        outcome = {}

        def slow_parse(file_path, filename):
            entered.set()
            # Only returns True if somebody sets the gate before the timeout
            outcome["released"] = gate.wait(timeout=5)
            return {"skills": ["Python"]}

        monkeypatch.setattr(fake_ml, "parse_resume", slow_parse)

        upload = threading.Thread(target=lambda: outcome.setdefault("upload", _upload(client, student)))
        upload.start()
        assert entered.wait(timeout=5)

        resp = client.get("/api/jobs")
        gate.set()
        upload.join(timeout=10)

        assert resp.status_code == 200
        assert outcome["released"] is True
        assert outcome["upload"].status_code == 200


class TestRecommendations:
    def test_no_skills(self, client):
        user = make_user("student", email="noskills@example.com")
        resp = client.post("/api/resumes/recommendations", headers=auth_headers(user))
        assert resp.status_code == 400
        assert resp.json()["code"] == "no_skills_on_file"

    def test_relays_ml_response(self, client, student, recruiter, fake_ml):
        job = make_job(recruiter, required_skills=["python"])
        make_job(recruiter, title="Closed", is_active=False)
        resp = client.post("/api/resumes/recommendations", headers=auth_headers(student))
        assert resp.status_code == 200
        assert resp.json() == fake_ml.match_response

        call = fake_ml.match_calls[0]
        assert call["skills"] == ["Python", "Java"]
        assert call["jobs"] == [{"_id": str(job["_id"]), "title": job["title"], "requiredSkills": ["python"]}]
