"""
Application Lifecycle Service

One application per (student, job). Status moves along

    pending -> interview_scheduled -> hired
    pending -> rejected
    interview_scheduled -> rejected

hired and rejected are terminal. Every status write is a compare-and-set on
the status it was read with, so two recruiters racing on the same
application can't both win.

Applications of deleted jobs are kept; listings skip them.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

from pymongo.errors import DuplicateKeyError

from jobboard.core.auth import ensure_role, is_admin, require_owner_or_admin
from jobboard.core.config import get_settings
from jobboard.core.errors import (
    AlreadyApplied, ApplicationNotFound, AuthorizationError, InvalidTransition, JobClosed,
    JobNotFound, ResumeNotFound, ResumeRequired, UserNotFound, ValidationError,
)
from jobboard.schemas.schemas import ApplicationStatus, Role, SideEffectResult
from jobboard.services.email_service import get_email_service
from jobboard.services.matching_service import calculate_fit_score
from jobboard.services.mongo_service import (
    ApplicationStore, JobStore, UserStore, serialize_doc, to_object_id, utcnow,
)
from jobboard.utils.file_upload import resume_exists, resume_path

settings = get_settings()
logger = logging.getLogger(__name__)


# ============================================================
# STATE MACHINE
# ============================================================

TRANSITIONS: Dict[ApplicationStatus, Set[ApplicationStatus]] = {
    ApplicationStatus.pending: {ApplicationStatus.interview_scheduled, ApplicationStatus.rejected},
    ApplicationStatus.interview_scheduled: {ApplicationStatus.hired, ApplicationStatus.rejected},
    ApplicationStatus.hired: set(),
    ApplicationStatus.rejected: set(),
}

# Legacy clients send "approved"
STATUS_ALIASES = {"approved": ApplicationStatus.interview_scheduled}

SCHEDULABLE = {ApplicationStatus.pending, ApplicationStatus.interview_scheduled}


def parse_status(value: str) -> ApplicationStatus:
    normalized = (value or "").strip().lower()
    if normalized in STATUS_ALIASES:
        return STATUS_ALIASES[normalized]
    try:
        return ApplicationStatus(normalized)
    except ValueError:
        raise ValidationError(f"Invalid status '{value}'")


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in TRANSITIONS[current]


def is_terminal(status: ApplicationStatus) -> bool:
    return not TRANSITIONS[status]


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ============================================================
# HELPERS
# ============================================================

def application_public(app: dict, job: Optional[dict] = None, applicant: Optional[dict] = None) -> dict:
    doc = serialize_doc(app)
    if job is not None:
        doc["job_title"] = job.get("title")
        doc["company_name"] = job.get("company_name")
    if applicant is not None:
        doc["applicant_name"] = applicant.get("name")
        doc["applicant_email"] = applicant.get("email")
        doc["applicant_skills"] = applicant.get("skills") or []
    return doc


def _load(app_id) -> dict:
    app = ApplicationStore().get(to_object_id(app_id, ApplicationNotFound))
    if app is None:
        raise ApplicationNotFound()
    return app


def _authorize_manage(actor: dict, app: dict) -> Optional[dict]:
    """Owning recruiter (through the job) or admin. Returns the job, None if it was deleted."""
    ensure_role(actor, Role.recruiter, Role.admin, message="Not authorized to manage this application")
    job = JobStore().get(app["job_id"])
    owner_id = job.get("recruiter_id") if job else None
    require_owner_or_admin(owner_id, actor, "Not authorized to manage this application")
    return job


def _authorize_view(actor: dict, app: dict) -> Optional[dict]:
    """Applicant, owning recruiter or admin."""
    if app["user_id"] == actor["_id"]:
        return JobStore().get(app["job_id"])
    return _authorize_manage(actor, app)


def _live_jobs(apps: List[dict]) -> Dict:
    job_ids = list({a["job_id"] for a in apps})
    if not job_ids:
        return {}
    return {j["_id"]: j for j in JobStore().find({"_id": {"$in": job_ids}})}


# ============================================================
# CREATE / QUERY
# ============================================================

def create_application(actor: dict, job_id) -> dict:
    ensure_role(actor, Role.student, message="Only students can apply for jobs")
    job_oid = to_object_id(job_id, JobNotFound)
    store = ApplicationStore()

    if store.get_for_pair(actor["_id"], job_oid):
        raise AlreadyApplied()
    if not actor.get("resume_ref"):
        raise ResumeRequired()

    job = JobStore().get(job_oid)
    if job is None:
        raise JobNotFound()
    if not job.get("is_active", True):
        raise JobClosed()

    now = utcnow()
    doc = {
        "user_id": actor["_id"],
        "job_id": job_oid,
        "status": ApplicationStatus.pending.value,
        "fit_score": calculate_fit_score(actor.get("skills") or [], job.get("required_skills") or []),
        "resume_snapshot_ref": actor["resume_ref"],
        "notes": None,
        "interview": None,
        "applied_at": now,
        "updated_at": now,
    }
    try:
        doc["_id"] = store.insert(doc)
    except DuplicateKeyError:
        raise AlreadyApplied()

    logger.info("Application %s: user %s -> job %s (fit %s)", doc["_id"], actor["_id"], job_oid, doc["fit_score"])
    return application_public(doc, job=job)


def check_application(actor: dict, job_id) -> dict:
    if not job_id:
        raise ValidationError("Job ID is required")
    job_oid = to_object_id(job_id, JobNotFound)
    app = ApplicationStore().get_for_pair(actor["_id"], job_oid)
    return {"success": True, "data": application_public(app) if app else None}


def calculate_fit(job_id, skills: List[str]) -> dict:
    job = JobStore().get(to_object_id(job_id, JobNotFound))
    if job is None:
        raise JobNotFound()
    return {"score": calculate_fit_score(skills, job.get("required_skills") or [])}


def get_application(actor: dict, app_id) -> dict:
    app = _load(app_id)
    job = _authorize_view(actor, app)
    return application_public(app, job=job)


def list_user_applications(actor: dict, user_id=None) -> List[dict]:
    """A user's applications, newest first. Only the user themselves or an admin."""
    target = actor["_id"] if user_id is None else to_object_id(user_id, UserNotFound)
    if target != actor["_id"] and not is_admin(actor):
        raise AuthorizationError("Not authorized to view these applications")

    apps = ApplicationStore().find({"user_id": target})
    jobs = _live_jobs(apps)
    return [application_public(a, job=jobs[a["job_id"]]) for a in apps if a["job_id"] in jobs]


def list_recruiter_applications(actor: dict) -> List[dict]:
    """Applications to every job the recruiter owns, with applicant details."""
    ensure_role(actor, Role.recruiter)
    jobs = {j["_id"]: j for j in JobStore().find({"recruiter_id": actor["_id"]})}
    if not jobs:
        return []
    apps = ApplicationStore().find({"job_id": {"$in": list(jobs)}})
    applicants = {
        u["_id"]: u for u in UserStore().find({"_id": {"$in": list({a["user_id"] for a in apps})}})
    }
    return [
        application_public(a, job=jobs[a["job_id"]], applicant=applicants.get(a["user_id"]))
        for a in apps
    ]


# ============================================================
# TRANSITIONS
# ============================================================

def update_status(actor: dict, app_id, status: str, notes: Optional[str] = None) -> dict:
    target = parse_status(status)
    app = _load(app_id)
    job = _authorize_manage(actor, app)

    current = ApplicationStatus(app["status"])
    # Re-sending the current status of a live application only updates notes
    same_state = target is current and not is_terminal(current)
    if not same_state and not can_transition(current, target):
        raise InvalidTransition(f"Cannot move application from {current.value} to {target.value}")

    fields = {"status": target.value, "updated_at": utcnow()}
    if notes is not None:
        fields["notes"] = notes

    updated = ApplicationStore().transition(app["_id"], current.value, fields)
    if updated is None:
        raise InvalidTransition("Application status changed concurrently")

    logger.info("Application %s: %s -> %s by %s", app["_id"], current.value, target.value, actor["_id"])
    return application_public(updated, job=job)


def _notify_interview(applicant: Optional[dict], job: Optional[dict],
                      interview_date: datetime, link: str) -> SideEffectResult:
    if applicant is None:
        return SideEffectResult(delivered=False, error="Applicant account no longer exists")
    job_title = job["title"] if job else "your application"
    try:
        return get_email_service().send_interview_scheduled(
            applicant["email"], applicant["name"], job_title, interview_date, link
        )
    except Exception as exc:
        logger.exception("Interview email to %s raised", applicant["email"])
        return SideEffectResult(delivered=False, error=str(exc))


def schedule_interview(actor: dict, app_id, interview_date: datetime) -> dict:
    """
    Commit the interview, then try the email. The email outcome is reported
    next to the committed application; it never rolls it back.
    """
    when = to_naive_utc(interview_date)
    if when <= utcnow():
        raise ValidationError("Interview date must be in the future")

    app = _load(app_id)
    job = _authorize_manage(actor, app)

    current = ApplicationStatus(app["status"])
    if current not in SCHEDULABLE:
        raise InvalidTransition(f"Cannot schedule an interview for a {current.value} application")

    link = f"{settings.interview_link_base.rstrip('/')}/{uuid.uuid4().hex}"
    updated = ApplicationStore().transition(app["_id"], current.value, {
        "status": ApplicationStatus.interview_scheduled.value,
        "interview": {"date": when, "link": link},
        "updated_at": utcnow(),
    })
    if updated is None:
        raise InvalidTransition("Application status changed concurrently")

    applicant = UserStore().get_by_id(app["user_id"])
    email = _notify_interview(applicant, job, when, link)

    warning = None
    if not email.delivered:
        warning = "Interview scheduled but the notification email could not be sent"
        logger.warning("Interview email for application %s failed: %s", app["_id"], email.error)

    return {
        "message": "Interview scheduled",
        "application": application_public(updated, job=job, applicant=applicant),
        "email": email,
        "warning": warning,
    }


def delete_application(actor: dict, app_id) -> dict:
    app = _load(app_id)
    _authorize_manage(actor, app)
    ApplicationStore().delete(app["_id"])
    logger.info("Application %s deleted by %s", app["_id"], actor["_id"])
    return {"message": "Application removed", "success": True}


def resume_for_application(actor: dict, app_id) -> Tuple[str, str]:
    """(path, stored name) of the resume snapshotted when the application was made."""
    app = _load(app_id)
    _authorize_view(actor, app)
    stored_name = app.get("resume_snapshot_ref")
    if not stored_name or not resume_exists(stored_name):
        raise ResumeNotFound("Resume file not found on server")
    return resume_path(stored_name), stored_name
