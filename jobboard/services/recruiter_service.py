"""
Recruiter Insights - read-only views over a recruiter's own jobs.
"""

import logging
from typing import List

from jobboard.core.auth import ensure_role, require_owner_or_admin
from jobboard.core.errors import JobNotFound
from jobboard.schemas.schemas import Role
from jobboard.services.application_service import application_public
from jobboard.services.matching_service import missing_skills
from jobboard.services.mongo_service import ApplicationStore, JobStore, UserStore, to_object_id

logger = logging.getLogger(__name__)


def _owned_job(actor: dict, job_id) -> dict:
    ensure_role(actor, Role.recruiter, Role.admin)
    job = JobStore().get(to_object_id(job_id, JobNotFound))
    if job is None:
        raise JobNotFound()
    require_owner_or_admin(job.get("recruiter_id"), actor, "Not authorized to view this job")
    return job


def _applicants(apps: List[dict]) -> dict:
    user_ids = list({a["user_id"] for a in apps})
    if not user_ids:
        return {}
    return {u["_id"]: u for u in UserStore().find({"_id": {"$in": user_ids}})}


def recruiter_analytics(actor: dict) -> dict:
    """Application count per owned job, plus totals."""
    ensure_role(actor, Role.recruiter)
    applications = ApplicationStore()
    per_job = [
        {
            "job_id": str(job["_id"]),
            "title": job["title"],
            "applications": applications.count({"job_id": job["_id"]}),
        }
        for job in JobStore().find({"recruiter_id": actor["_id"]})
    ]
    return {
        "total_jobs": len(per_job),
        "total_applications": sum(item["applications"] for item in per_job),
        "applications_per_job": per_job,
    }


def skill_gap(actor: dict, job_id) -> dict:
    """Required skills that no applicant to the job has."""
    job = _owned_job(actor, job_id)
    apps = ApplicationStore().find({"job_id": job["_id"]})
    applicants = _applicants(apps)
    gap = missing_skills(
        job.get("required_skills") or [],
        (applicants[a["user_id"]].get("skills") or [] for a in apps if a["user_id"] in applicants),
    )
    logger.debug("Skill gap for job %s: %s", job["_id"], gap)
    return {"job_id": str(job["_id"]), "missing_skills": gap}


def job_applicants(actor: dict, job_id) -> List[dict]:
    job = _owned_job(actor, job_id)
    apps = ApplicationStore().find({"job_id": job["_id"]})
    applicants = _applicants(apps)
    return [application_public(a, job=job, applicant=applicants.get(a["user_id"])) for a in apps]
