"""Shared fixtures: in-memory MongoDB, fake email / ML services, users and tokens."""

from typing import Any, Dict, List, Optional

import mongomock
import pytest
from fastapi.testclient import TestClient

from jobboard.core.auth import create_session_token, hash_password
from jobboard.core.config import get_settings
from jobboard.core.errors import DependencyError
from jobboard.db import mongodb
from jobboard.schemas.schemas import SideEffectResult
from jobboard.services import email_service, ml_client
from jobboard.services.email_service import EmailService
from jobboard.services.mongo_service import JobStore, UserStore, utcnow

PASSWORD = "password123"

# bcrypt is slow; hash once for every fixture user
_PASSWORD_HASH = hash_password(PASSWORD)


class FakeEmailService(EmailService):
    """Records every message. Set fail=True to simulate a dead mail server."""

    def __init__(self):
        super().__init__(backend="console")
        self.sent: List[Dict[str, str]] = []
        self.otps: Dict[str, str] = {}
        self.reset_urls: Dict[str, str] = {}
        self.invite_tokens: Dict[str, str] = {}
        self.fail = False
        self.raise_error = False

    def send(self, to_email, subject, text_body):
        if self.raise_error:
            raise RuntimeError("mail server exploded")
        self.sent.append({"to": to_email, "subject": subject, "body": text_body})
        if self.fail:
            return SideEffectResult(delivered=False, error="smtp down")
        return SideEffectResult(delivered=True)

    def send_verification_otp(self, to_email, name, otp):
        self.otps[to_email] = otp
        return super().send_verification_otp(to_email, name, otp)

    def send_password_reset(self, to_email, name, reset_url):
        self.reset_urls[to_email] = reset_url
        return super().send_password_reset(to_email, name, reset_url)

    def send_admin_invite(self, to_email, token, invited_by):
        self.invite_tokens[to_email] = token
        return super().send_admin_invite(to_email, token, invited_by)


class FakeMLClient:
    """Stands in for the ML HTTP service."""

    def __init__(self):
        self.skills = ["Python", "Java"]
        self.fail = False
        self.parse_calls: List[str] = []
        self.match_calls: List[Dict[str, Any]] = []
        self.match_response: Any = [{"jobId": "x", "score": 0.9}]

    def parse_resume(self, file_path: str, filename: str) -> Dict[str, Any]:
        self.parse_calls.append(file_path)
        if self.fail:
            raise DependencyError("Resume service unavailable")
        return {"skills": list(self.skills), "name": "Parsed Name"}

    def match_jobs(self, skills, jobs):
        self.match_calls.append({"skills": skills, "jobs": jobs})
        return self.match_response


@pytest.fixture(autouse=True)
def db(monkeypatch):
    database = mongomock.MongoClient()["jobboard_test"]
    monkeypatch.setattr(mongodb, "_db", database)
    mongodb.init_mongo_indexes()
    return database


@pytest.fixture(autouse=True)
def upload_dir(monkeypatch, tmp_path):
    path = tmp_path / "resumes"
    path.mkdir()
    monkeypatch.setattr(get_settings(), "upload_dir", str(path))
    return path


@pytest.fixture(autouse=True)
def fake_email(monkeypatch):
    fake = FakeEmailService()
    monkeypatch.setattr(email_service, "_email_service", fake)
    return fake


@pytest.fixture(autouse=True)
def fake_ml(monkeypatch):
    fake = FakeMLClient()
    monkeypatch.setattr(ml_client, "_ml_client", fake)
    return fake


@pytest.fixture()
def client():
    from jobboard.main import app

    with TestClient(app) as c:
        yield c


# ============================================================
# USER / JOB FACTORIES
# ============================================================

def make_user(role: str = "student", email: Optional[str] = None, name: str = "Test User",
              skills: Optional[List[str]] = None, resume_ref: Optional[str] = None,
              is_verified: bool = True) -> dict:
    users = UserStore()
    email = email or f"{role}-{users.count()}@example.com"
    user_id = users.insert(name, email, _PASSWORD_HASH, role, is_verified=is_verified)
    fields = {}
    if skills is not None:
        fields["skills"] = skills
    if resume_ref is not None:
        fields["resume_ref"] = resume_ref
    if fields:
        users.collection.update_one({"_id": user_id}, {"$set": fields})
    user = users.get_by_id(user_id)
    user.pop("password")
    return user


def make_job(recruiter: dict, required_skills: Optional[List[str]] = None, is_active: bool = True,
             **overrides) -> dict:
    doc = {
        "title": "Backend Engineer",
        "description": "Build APIs",
        "company_name": "Acme",
        "recruiter_name": recruiter["name"],
        "required_skills": required_skills if required_skills is not None else ["python", "sql"],
        "location": "Berlin",
        "salary": None,
        "type": "full-time",
        "experience": "junior",
        "remote": False,
        "recruiter_id": recruiter["_id"],
        "is_active": is_active,
        "posted_at": utcnow(),
    }
    doc.update(overrides)
    doc["_id"] = JobStore().insert(doc)
    return doc


def auth_headers(user: dict) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(user)}"}


@pytest.fixture()
def student():
    return make_user("student", email="student@example.com", name="Stu Dent",
                     skills=["Python", "Java"], resume_ref="111-abc-cv.pdf")


@pytest.fixture()
def recruiter():
    return make_user("recruiter", email="recruiter@example.com", name="Rita Recruiter")


@pytest.fixture()
def admin():
    return make_user("admin", email="admin@example.com", name="Ada Admin")
