"""Tests for admin oversight: user management, invites, audit trail and analytics."""

import threading
from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from jobboard.core.errors import (
    AuthorizationError, CannotDeleteSelf, TokenInvalidOrExpired, UserNotFound, ValidationError,
)
from jobboard.schemas.schemas import AnalyticsRange
from jobboard.services import admin_service, application_service
from jobboard.services.mongo_service import AdminLogStore, JobStore, UserStore, utcnow

from conftest import make_job, make_user


def _actions():
    return [log["action"] for log in AdminLogStore().find()]


class TestUserManagement:
    def test_demoting_recruiter_detaches_jobs(self, admin, recruiter):
        for i in range(3):
            make_job(recruiter, title=f"Job {i}")
        admin_service.change_user_role(admin, str(recruiter["_id"]), "student")

        jobs = JobStore().find()
        assert len(jobs) == 3
        assert all(job["recruiter_id"] is None for job in jobs)
        assert UserStore().get_by_id(recruiter["_id"])["role"] == "student"
        assert _actions() == ["CHANGE_ROLE"]

    def test_promoting_recruiter_keeps_jobs(self, admin, recruiter):
        make_job(recruiter)
        admin_service.change_user_role(admin, str(recruiter["_id"]), "admin")
        assert [job["recruiter_id"] for job in JobStore().find()] == [recruiter["_id"]]
        assert UserStore().get_by_id(recruiter["_id"])["role"] == "admin"

    def test_same_role_is_a_noop(self, admin, student):
        result = admin_service.change_user_role(admin, str(student["_id"]), "student")
        assert result["message"] == "Role unchanged"
        assert AdminLogStore().count() == 0

    def test_invalid_role(self, admin, student):
        with pytest.raises(ValidationError):
            admin_service.change_user_role(admin, str(student["_id"]), "overlord")

    def test_deleting_recruiter_deletes_jobs(self, admin, recruiter):
        make_job(recruiter)
        make_job(recruiter)
        admin_service.delete_user(admin, str(recruiter["_id"]))
        assert JobStore().count() == 0
        assert UserStore().get_by_id(recruiter["_id"]) is None
        log = AdminLogStore().find()[0]
        assert log["action"] == "DELETE_USER"
        assert log["metadata"]["deleted_user"] == "recruiter@example.com"

    def test_cannot_delete_self(self, admin):
        with pytest.raises(CannotDeleteSelf):
            admin_service.delete_user(admin, str(admin["_id"]))
        assert AdminLogStore().count() == 0

    def test_unknown_user(self, admin):
        with pytest.raises(UserNotFound):
            admin_service.delete_user(admin, str(ObjectId()))

    def test_non_admin_forbidden(self, student, recruiter):
        with pytest.raises(AuthorizationError):
            admin_service.delete_user(student, str(recruiter["_id"]))

    def test_list_users_hides_passwords(self, admin, student):
        users = admin_service.list_users(admin)
        assert {u["email"] for u in users} == {"admin@example.com", "student@example.com"}
        assert all("password" not in u for u in users)


class TestInvites:
    def _invite(self, admin, fake_email, email="newadmin@example.com"):
        admin_service.send_admin_invite(admin, email)
        return fake_email.invite_tokens[email]

    def test_invite_accepted_once(self, admin, fake_email):
        token = self._invite(admin, fake_email)
        invitee = make_user("student", email="newadmin@example.com")

        result = admin_service.accept_admin_invite(invitee, token)
        assert result["message"] == "You are now an admin"
        assert UserStore().get_by_id(invitee["_id"])["role"] == "admin"
        assert sorted(_actions()) == ["ACCEPT_INVITE", "SEND_INVITE"]

        with pytest.raises(TokenInvalidOrExpired):
            admin_service.accept_admin_invite(invitee, token)

    def test_concurrent_accepts_elevate_once(self, admin, fake_email):
        token = self._invite(admin, fake_email)
        invitee = make_user("student", email="newadmin@example.com")
        barrier = threading.Barrier(2)
        outcomes = []

        def accept():
            barrier.wait()
            try:
                admin_service.accept_admin_invite(invitee, token)
                outcomes.append("elevated")
            except TokenInvalidOrExpired:
                outcomes.append("rejected")

        threads = [threading.Thread(target=accept) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(outcomes) == ["elevated", "rejected"]
        assert _actions().count("ACCEPT_INVITE") == 1
        assert UserStore().get_by_id(invitee["_id"])["role"] == "admin"

    def test_wrong_email(self, admin, fake_email):
        token = self._invite(admin, fake_email)
        someone_else = make_user("student", email="other@example.com")
        with pytest.raises(TokenInvalidOrExpired):
            admin_service.accept_admin_invite(someone_else, token)
        assert UserStore().get_by_id(someone_else["_id"])["role"] == "student"

    def test_expired(self, admin, fake_email, db):
        token = self._invite(admin, fake_email)
        db["admin_invites"].update_one({"token": token}, {"$set": {"expires_at": utcnow() - timedelta(minutes=1)}})
        invitee = make_user("student", email="newadmin@example.com")
        with pytest.raises(TokenInvalidOrExpired):
            admin_service.accept_admin_invite(invitee, token)

    def test_failed_elevation_releases_claim(self, admin, fake_email, db, monkeypatch):
        token = self._invite(admin, fake_email)
        invitee = make_user("student", email="newadmin@example.com")

        def broken_set_role(self, user_id, role):
            raise RuntimeError("write failed")

        with monkeypatch.context() as patched:
            patched.setattr(UserStore, "set_role", broken_set_role)
            with pytest.raises(RuntimeError):
                admin_service.accept_admin_invite(invitee, token)
        assert db["admin_invites"].find_one({"token": token})["used"] is False

        admin_service.accept_admin_invite(invitee, token)
        assert UserStore().get_by_id(invitee["_id"])["role"] == "admin"

    def test_email_failure_still_stores_invite(self, admin, fake_email, db):
        fake_email.fail = True
        result = admin_service.send_admin_invite(admin, "NewAdmin@Example.com")
        assert result["email"] == "newadmin@example.com"
        assert result["email_delivery"].delivered is False
        assert result["warning"]
        assert db["admin_invites"].count_documents({"email": "newadmin@example.com"}) == 1

    def test_invite_link_in_email(self, admin, fake_email):
        token = self._invite(admin, fake_email)
        assert f"/admin/accept-invite?token={token}" in fake_email.sent[-1]["body"]


class TestAuditLog:
    def test_pagination_and_actor_details(self, admin, student):
        for _ in range(5):
            admin_service.change_user_role(admin, str(student["_id"]), "recruiter")
            admin_service.change_user_role(admin, str(student["_id"]), "student")

        page = admin_service.list_admin_logs(admin, page=2, limit=4)
        assert page["total"] == 10
        assert page["total_pages"] == 3
        assert page["current_page"] == 2
        assert len(page["logs"]) == 4
        assert page["logs"][0]["actor_email"] == "admin@example.com"

    def test_limit_capped(self, admin):
        store = AdminLogStore()
        for _ in range(120):
            store.insert(admin["_id"], "CHANGE_ROLE")
        page = admin_service.list_admin_logs(admin, limit=1000)
        assert len(page["logs"]) == 100
        assert page["total_pages"] == 2


class TestAnalytics:
    def test_metrics(self, admin, student, recruiter):
        job = make_job(recruiter)
        make_job(recruiter, is_active=False)
        application_service.create_application(student, str(job["_id"]))

        metrics = admin_service.platform_metrics(admin)
        assert metrics["total_users"] == 3
        assert metrics["total_students"] == 1
        assert metrics["total_jobs"] == 2
        assert metrics["active_jobs"] == 1
        assert metrics["inactive_jobs"] == 1
        assert metrics["avg_applications_per_job"] == 0.5

    def test_analytics_card_counts_logins_by_weekday(self, admin, student, db):
        now = utcnow()
        recent = now - timedelta(days=1)
        old = now - timedelta(days=40)
        db["users"].update_one({"_id": student["_id"]}, {"$set": {"login_history": [recent, recent, old]}})

        week = admin_service.analytics_card(admin, AnalyticsRange.week)
        assert [d["name"] for d in week["user_activity"]] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert sum(d["active"] for d in week["user_activity"]) == 2
        day = admin_service.WEEKDAYS[recent.weekday()]
        assert {d["name"]: d["active"] for d in week["user_activity"]}[day] == 2

        everything = admin_service.analytics_card(admin, AnalyticsRange.all)
        assert sum(d["active"] for d in everything["user_activity"]) == 3
        assert everything["admin_count"] == 1

    def test_known_weekday(self, admin, student, db):
        monday = datetime(2024, 1, 1, 12, 0)
        db["users"].update_one({"_id": student["_id"]}, {"$set": {"login_history": [monday]}})
        card = admin_service.analytics_card(admin, AnalyticsRange.all)
        assert card["user_activity"][0] == {"name": "Mon", "active": 1}

    def test_job_details_with_match_scores(self, admin, recruiter, student):
        job = make_job(recruiter, required_skills=["python", "sql"])
        application_service.create_application(student, str(job["_id"]))
        strong = make_user("student", email="strong@example.com", name="Strong",
                           skills=["python", "sql"], resume_ref="222-def-cv.pdf")
        application_service.create_application(strong, str(job["_id"]))

        details = admin_service.job_details_with_match_scores(admin, str(job["_id"]))
        assert details["applications"] == 2
        assert details["average_match_score"] == 75
        assert [a["name"] for a in details["top_applicants"]] == ["Strong", "Stu Dent"]
        assert details["recruiter"]["email"] == "recruiter@example.com"

    def test_per_user_analytics_student(self, admin, recruiter, student):
        job = make_job(recruiter)
        app = application_service.create_application(student, str(job["_id"]))
        application_service.update_status(recruiter, app["id"], "rejected")

        stats = admin_service.per_user_analytics(admin, str(student["_id"]))
        assert stats["jobs_applied"] == 1
        assert stats["jobs_rejected"] == 1
        assert stats["rejection_rate"] == 100
        assert stats["profile_completed"] == 100
