"""
Admin Oversight Service

Every mutation here is written to the audit trail (services.audit) before it
is applied. Reads (metrics, analytics, logs) are plain queries.

Elevation to admin happens only through a single-use invite:
1. An admin issues an invite for an email (24h expiry), emailed best-effort
2. The invited user, signed in with that email, accepts it
3. The claim is one conditional find-and-update, so of two concurrent
   accepts exactly one elevates; a failed elevation releases the claim
"""

import logging
import math
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from jobboard.core.auth import ensure_role
from jobboard.core.config import get_settings
from jobboard.core.errors import (
    CannotDeleteSelf, JobNotFound, TokenInvalidOrExpired, UserNotFound, ValidationError,
)
from jobboard.schemas.schemas import AnalyticsRange, ApplicationStatus, Role, SideEffectResult
from jobboard.services import audit
from jobboard.services.auth_service import normalize_email, user_public
from jobboard.services.email_service import get_email_service
from jobboard.services.job_service import job_public
from jobboard.services.matching_service import calculate_fit_score, round_half_up
from jobboard.services.mongo_service import (
    AdminInviteStore, AdminLogStore, ApplicationStore, JobStore, UserStore,
    serialize_doc, to_object_id, utcnow,
)

settings = get_settings()
logger = logging.getLogger(__name__)

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

RANGE_DAYS = {
    AnalyticsRange.week: 7,
    AnalyticsRange.month: 30,
    AnalyticsRange.year: 365,
}


def _load_user(user_id) -> dict:
    user = UserStore().get_by_id(to_object_id(user_id, UserNotFound))
    if user is None:
        raise UserNotFound()
    return user


def _rate(part: int, whole: int) -> int:
    return round_half_up(part * 100 / whole) if whole else 0


# ============================================================
# USER MANAGEMENT
# ============================================================

def list_users(actor: dict) -> List[dict]:
    ensure_role(actor, Role.admin)
    return [user_public(u) for u in UserStore().find()]


def delete_user(actor: dict, user_id) -> dict:
    """Audit, then the recruiter's jobs, then the user. Their applications stay behind."""
    ensure_role(actor, Role.admin)
    target_id = to_object_id(user_id, UserNotFound)
    if target_id == actor["_id"]:
        raise CannotDeleteSelf()

    user = _load_user(target_id)
    audit.log_admin_action(actor["_id"], audit.DELETE_USER, user["_id"], {
        "deleted_user": user["email"],
        "role": user["role"],
    })

    removed_jobs = 0
    if user["role"] == Role.recruiter.value:
        removed_jobs = JobStore().delete_by_recruiter(user["_id"])
    UserStore().delete(user["_id"])

    logger.info("User %s deleted by %s (%d jobs removed)", user["email"], actor["_id"], removed_jobs)
    return {"message": "User deleted successfully", "success": True}


def change_user_role(actor: dict, user_id, role: str) -> dict:
    ensure_role(actor, Role.admin)
    try:
        new_role = Role((role or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid role '{role}'")

    user = _load_user(user_id)
    old_role = Role(user["role"])
    if old_role is new_role:
        return {"message": "Role unchanged", "success": True}

    audit.log_admin_action(actor["_id"], audit.CHANGE_ROLE, user["_id"], {
        "old_role": old_role.value,
        "new_role": new_role.value,
    })

    # Only a demotion to student drops job ownership; recruiter -> admin keeps it
    if old_role is Role.recruiter and new_role is Role.student:
        detached = JobStore().detach_recruiter(user["_id"])
        logger.info("Detached %d jobs from demoted recruiter %s", detached, user["_id"])

    if UserStore().set_role(user["_id"], new_role.value) is None:
        raise UserNotFound()
    return {"message": "Role updated successfully", "success": True}


# ============================================================
# ADMIN INVITES
# ============================================================

def send_admin_invite(actor: dict, email: str) -> dict:
    ensure_role(actor, Role.admin)
    email = normalize_email(email)
    token = secrets.token_hex(32)
    expires_at = utcnow() + timedelta(hours=settings.admin_invite_expire_hours)

    audit.log_admin_action(actor["_id"], audit.SEND_INVITE, None, {"invite_email": email})
    AdminInviteStore().insert(email, token, expires_at, actor["_id"])

    try:
        delivery = get_email_service().send_admin_invite(email, token, actor.get("name") or actor["email"])
    except Exception as exc:
        logger.exception("Admin invite email to %s raised", email)
        delivery = SideEffectResult(delivered=False, error=str(exc))

    warning = None
    if not delivery.delivered:
        warning = "Invite created but the email could not be sent"
        logger.warning("Admin invite email to %s failed: %s", email, delivery.error)

    return {
        "message": "Admin invite sent",
        "email": email,
        "expires_at": expires_at,
        "email_delivery": delivery,
        "warning": warning,
    }


def accept_admin_invite(actor: dict, token: str) -> dict:
    invites = AdminInviteStore()
    invite = invites.claim(token, normalize_email(actor["email"]), actor["_id"], utcnow())
    if invite is None:
        raise TokenInvalidOrExpired()

    try:
        audit.log_admin_action(actor["_id"], audit.ACCEPT_INVITE, actor["_id"], {
            "invite_id": str(invite["_id"]),
            "old_role": actor["role"],
        })
        if UserStore().set_role(actor["_id"], Role.admin.value) is None:
            raise UserNotFound()
    except Exception:
        invites.release(invite["_id"])
        raise

    logger.info("User %s elevated to admin via invite %s", actor["_id"], invite["_id"])
    return {"message": "You are now an admin", "success": True}


# ============================================================
# AUDIT LOG
# ============================================================

def list_admin_logs(actor: dict, page: int = 1, limit: int = 20) -> dict:
    ensure_role(actor, Role.admin)
    page = max(page, 1)
    limit = max(min(limit, 100), 1)

    store = AdminLogStore()
    total = store.count()
    logs = store.find(skip=(page - 1) * limit, limit=limit)

    actor_ids = list({log["actor_id"] for log in logs})
    actors = {u["_id"]: u for u in UserStore().find({"_id": {"$in": actor_ids}})} if actor_ids else {}

    items = []
    for log in logs:
        item = serialize_doc(log)
        who = actors.get(log["actor_id"])
        item["actor_name"] = who["name"] if who else None
        item["actor_email"] = who["email"] if who else None
        items.append(item)

    return {
        "logs": items,
        "total": total,
        "total_pages": math.ceil(total / limit),
        "current_page": page,
    }


# ============================================================
# ANALYTICS
# ============================================================

def platform_metrics(actor: Optional[dict] = None) -> dict:
    if actor is not None:
        ensure_role(actor, Role.admin)
    users, jobs, applications = UserStore(), JobStore(), ApplicationStore()

    total_jobs = jobs.count()
    active_jobs = jobs.count({"is_active": True})
    total_applications = applications.count()
    return {
        "total_users": users.count(),
        "total_students": users.count({"role": Role.student.value}),
        "total_recruiters": users.count({"role": Role.recruiter.value}),
        "total_admins": users.count({"role": Role.admin.value}),
        "total_jobs": total_jobs,
        "active_jobs": active_jobs,
        "inactive_jobs": total_jobs - active_jobs,
        "total_applications": total_applications,
        "avg_applications_per_job": round(total_applications / total_jobs, 2) if total_jobs else 0.0,
    }


def analytics_card(actor: dict, period: AnalyticsRange = AnalyticsRange.all) -> dict:
    """Headline counts plus logins per weekday (Mon..Sun) inside the range."""
    ensure_role(actor, Role.admin)
    now = utcnow()
    days = RANGE_DAYS.get(period)
    since = now - timedelta(days=days) if days else datetime(1970, 1, 1)

    activity = {day: 0 for day in WEEKDAYS}
    for ts in UserStore().login_timestamps(since, now):
        activity[WEEKDAYS[ts.weekday()]] += 1

    metrics = platform_metrics()
    return {
        "total_users": metrics["total_users"],
        "active_jobs": metrics["active_jobs"],
        "total_applications": metrics["total_applications"],
        "student_count": metrics["total_students"],
        "recruiter_count": metrics["total_recruiters"],
        "admin_count": metrics["total_admins"],
        "user_activity": [{"name": day, "active": activity[day]} for day in WEEKDAYS],
    }


def _profile_completion(user: dict) -> int:
    filled = sum(1 for value in (user.get("name"), user.get("skills"), user.get("resume_ref")) if value)
    return _rate(filled, 3)


def per_user_analytics(actor: dict, user_id) -> dict:
    ensure_role(actor, Role.admin)
    user = _load_user(user_id)
    uid = user["_id"]
    history = user.get("login_history") or []
    role = Role(user["role"])

    result = {
        "user_id": str(uid),
        "name": user["name"],
        "email": user["email"],
        "role": role.value,
        "last_active": history[-1] if history else user.get("created_at"),
        "created_at": user.get("created_at"),
        "skills": user.get("skills") or [],
        "profile_completed": _profile_completion(user),
    }

    applications = ApplicationStore()
    logs = AdminLogStore()

    if role is Role.student:
        applied = applications.count({"user_id": uid})
        rejected = applications.count({"user_id": uid, "status": ApplicationStatus.rejected.value})
        interviewed = applications.count({"user_id": uid, "status": ApplicationStatus.interview_scheduled.value})
        hired = applications.count({"user_id": uid, "status": ApplicationStatus.hired.value})
        result.update({
            "jobs_applied": applied,
            "jobs_rejected": rejected,
            "jobs_interviewed": interviewed,
            "jobs_hired": hired,
            "rejection_rate": _rate(rejected, applied),
            "interview_rate": _rate(interviewed, applied),
        })
    elif role is Role.recruiter:
        job_ids = [j["_id"] for j in JobStore().find({"recruiter_id": uid})]
        scope = {"job_id": {"$in": job_ids}}
        received = applications.count(scope)
        rejected = applications.count({**scope, "status": ApplicationStatus.rejected.value})
        interviews = applications.count({**scope, "status": ApplicationStatus.interview_scheduled.value})
        result.update({
            "jobs_posted": len(job_ids),
            "total_applications": received,
            "rejected": rejected,
            "interviews_scheduled": interviews,
            "rejection_rate": _rate(rejected, received),
            "interview_rate": _rate(interviews, received),
        })
    elif role is Role.admin:
        result.update({
            "actions_taken": logs.count({"actor_id": uid}),
            "recent_actions": [serialize_doc(log) for log in logs.find({"actor_id": uid}, limit=5)],
            "platform_metrics": platform_metrics(),
        })

    result["recent_activities"] = [
        serialize_doc(log)
        for log in logs.find({"$or": [{"actor_id": uid}, {"target_id": uid}]}, limit=5)
    ]
    return result


def job_details_with_match_scores(actor: dict, job_id) -> dict:
    """The job, its application count, average applicant match and the top five."""
    ensure_role(actor, Role.admin)
    job = JobStore().get(to_object_id(job_id, JobNotFound))
    if job is None:
        raise JobNotFound()

    apps = ApplicationStore().find({"job_id": job["_id"]})
    user_ids = list({a["user_id"] for a in apps})
    users = {u["_id"]: u for u in UserStore().find({"_id": {"$in": user_ids}})} if user_ids else {}

    required = job.get("required_skills") or []
    scored = []
    for app in apps:
        user = users.get(app["user_id"]) or {}
        scored.append({
            "name": user.get("name") or "Anonymous",
            "email": user.get("email") or "",
            "match_score": calculate_fit_score(user.get("skills") or [], required),
            "status": app["status"],
        })
    scored.sort(key=lambda item: item["match_score"], reverse=True)

    recruiter = UserStore().get_by_id(job["recruiter_id"]) if job.get("recruiter_id") else None
    details = job_public(job)
    details.update({
        "recruiter": {"name": recruiter["name"], "email": recruiter["email"]} if recruiter else None,
        "applications": len(apps),
        "average_match_score": round_half_up(sum(s["match_score"] for s in scored) / len(scored)) if scored else 0,
        "top_applicants": scored[:5],
    })
    return details
