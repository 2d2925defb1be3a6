"""
Job Catalog Service

Postings are owned by the recruiter who created them. Students and anonymous
callers only ever see active jobs; the owning recruiter and admins also see
inactive ones. Required skills are stored normalized (see matching_service).
"""

import logging
import re
from typing import List, Optional

from jobboard.core.auth import ensure_role, is_admin, require_owner_or_admin
from jobboard.core.errors import ConflictError, JobNotFound, ValidationError
from jobboard.schemas.schemas import JobCreate, JobUpdate, Role
from jobboard.services import audit
from jobboard.services.matching_service import normalize_skills
from jobboard.services.mongo_service import JobStore, serialize_doc, to_object_id, utcnow

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = ("title", "description", "company_name", "recruiter_name")


def job_public(job: dict) -> dict:
    return serialize_doc(job)


def _clean_skills(skills: List[str]) -> List[str]:
    cleaned = normalize_skills(skills)
    if not cleaned:
        raise ValidationError("requiredSkills must contain at least one skill")
    return cleaned


def _load(job_id) -> dict:
    job = JobStore().get(to_object_id(job_id, JobNotFound))
    if job is None:
        raise JobNotFound()
    return job


def _load_for_mutation(actor: dict, job_id) -> dict:
    ensure_role(actor, Role.recruiter, Role.admin)
    job = _load(job_id)
    require_owner_or_admin(job.get("recruiter_id"), actor, "Not authorized to modify this job")
    return job


# ============================================================
# MUTATIONS
# ============================================================

def create_job(actor: dict, data: JobCreate) -> dict:
    ensure_role(actor, Role.recruiter, message="Only recruiters can post jobs")

    fields = data.model_dump()
    for name in REQUIRED_TEXT_FIELDS:
        fields[name] = fields[name].strip()
        if not fields[name]:
            raise ValidationError(f"{name} is required")

    doc = {
        **fields,
        "required_skills": _clean_skills(data.required_skills),
        "recruiter_id": actor["_id"],
        "is_active": True,
        "posted_at": utcnow(),
    }
    doc["_id"] = JobStore().insert(doc)
    logger.info("Job %s posted by %s", doc["_id"], actor["_id"])
    return job_public(doc)


def update_job(actor: dict, job_id, data: JobUpdate) -> dict:
    job = _load_for_mutation(actor, job_id)

    fields = data.model_dump(exclude_unset=True, exclude_none=True)
    for name in REQUIRED_TEXT_FIELDS:
        if name in fields:
            fields[name] = fields[name].strip()
            if not fields[name]:
                raise ValidationError(f"{name} cannot be empty")
    if "required_skills" in fields:
        fields["required_skills"] = _clean_skills(fields["required_skills"])
    if not fields:
        return job_public(job)

    updated = JobStore().update(job["_id"], fields)
    if updated is None:
        raise JobNotFound()
    return job_public(updated)


def toggle_active(actor: dict, job_id) -> dict:
    job = _load_for_mutation(actor, job_id)
    current = bool(job.get("is_active", True))
    updated = JobStore().set_active(job["_id"], expected=current, value=not current)
    if updated is None:
        raise ConflictError("Job was modified concurrently, please retry")
    return {"id": str(updated["_id"]), "is_active": updated["is_active"]}


def delete_job(actor: dict, job_id) -> dict:
    """Owner or admin. Admin deletions are audited first. Applications are left in place."""
    job = _load_for_mutation(actor, job_id)
    if is_admin(actor):
        audit.log_admin_action(actor["_id"], audit.DELETE_JOB, job["_id"], {
            "job_title": job["title"],
            "company": job.get("company_name"),
        })
    JobStore().delete(job["_id"])
    logger.info("Job %s deleted by %s", job["_id"], actor["_id"])
    return {"message": "Job removed", "success": True}


# ============================================================
# READS
# ============================================================

def get_job(job_id, actor: Optional[dict] = None) -> dict:
    job = _load(job_id)
    if not job.get("is_active", True):
        owner = actor is not None and job.get("recruiter_id") == actor["_id"]
        if not (owner or is_admin(actor)):
            # Inactive postings don't exist for everybody else
            raise JobNotFound()
    return job_public(job)


def build_search_query(q: Optional[str] = None, location: Optional[str] = None,
                       type: Optional[str] = None, experience: Optional[str] = None,
                       remote: Optional[bool] = None, skills: Optional[List[str]] = None,
                       include_inactive: bool = False) -> dict:
    query = {} if include_inactive else {"is_active": True}

    if q and q.strip():
        pattern = {"$regex": re.escape(q.strip()), "$options": "i"}
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"company_name": pattern},
        ]
    if location and location.strip():
        query["location"] = {"$regex": re.escape(location.strip()), "$options": "i"}
    if type:
        query["type"] = type
    if experience:
        query["experience"] = experience
    if remote is not None:
        query["remote"] = remote
    wanted = normalize_skills(skills or [])
    if wanted:
        query["required_skills"] = {"$in": wanted}
    return query


def search_jobs(actor: Optional[dict] = None, include_inactive: bool = False, **filters) -> dict:
    """Public search. include_inactive is honoured for admins only."""
    query = build_search_query(include_inactive=include_inactive and is_admin(actor), **filters)
    jobs = JobStore().find(query)
    return {"jobs": [job_public(j) for j in jobs], "total": len(jobs)}


def list_recruiter_jobs(actor: dict) -> dict:
    ensure_role(actor, Role.recruiter, message="Only recruiters can view their jobs")
    jobs = JobStore().find({"recruiter_id": actor["_id"]})
    return {"jobs": [job_public(j) for j in jobs], "total": len(jobs)}


def list_all_jobs(actor: dict) -> dict:
    ensure_role(actor, Role.admin)
    jobs = JobStore().find()
    return {"jobs": [job_public(j) for j in jobs], "total": len(jobs)}


def active_catalog() -> List[dict]:
    return JobStore().find({"is_active": True})

