"""
Resume Service - upload, parse, store, recommend.

FLOW (upload):
1. Validate extension and size (nothing written yet)
2. Store the file under a fresh generated name
3. Forward it to the ML parser (synchronous, with timeout)
4. Replace resume_ref + skills on the user in one update
5. Delete the previous file, unless an application snapshot still points at it

If step 3 fails the new file is removed and the user is left untouched.
"""

import logging
from typing import Any, List, Tuple

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from jobboard.core.errors import NoSkillsOnFile, ResumeNotFound, UserNotFound
from jobboard.services.job_service import active_catalog
from jobboard.services.ml_client import get_ml_client
from jobboard.services.mongo_service import ApplicationStore, UserStore
from jobboard.utils.file_upload import (
    delete_resume, read_validated_upload, resume_exists, resume_path, save_resume,
)

logger = logging.getLogger(__name__)


def _clean_parsed_skills(skills: List[Any]) -> List[str]:
    return [str(s).strip() for s in skills if s is not None and str(s).strip()]


async def upload_resume(actor: dict, file: UploadFile) -> dict:
    content, filename = await read_validated_upload(file)
    stored_name = save_resume(content, filename)

    try:
        # Blocking HTTP call, kept off the event loop
        parsed = await run_in_threadpool(get_ml_client().parse_resume, resume_path(stored_name), filename)
    except Exception:
        delete_resume(stored_name)
        raise

    skills = _clean_parsed_skills(parsed["skills"])
    before = UserStore().replace_resume(actor["_id"], stored_name, skills)
    if before is None:
        delete_resume(stored_name)
        raise UserNotFound()

    old_ref = before.get("resume_ref")
    if old_ref and old_ref != stored_name and not ApplicationStore().references_resume(old_ref):
        delete_resume(old_ref)

    logger.info("Resume %s stored for user %s (%d skills)", stored_name, actor["_id"], len(skills))
    return {
        "success": True,
        "message": "Resume uploaded and parsed successfully",
        "resume_ref": stored_name,
        "skills": skills,
        "parsed_data": parsed,
    }


def own_resume(actor: dict) -> Tuple[str, str]:
    """(path, stored name) of the caller's current resume."""
    stored_name = actor.get("resume_ref")
    if not stored_name or not resume_exists(stored_name):
        raise ResumeNotFound()
    return resume_path(stored_name), stored_name


def recommend_jobs(actor: dict) -> Any:
    """Ask the ML service to rank the active catalog against the caller's skills."""
    skills = actor.get("skills") or []
    if not skills:
        raise NoSkillsOnFile()

    jobs = [
        {"_id": str(job["_id"]), "title": job["title"], "requiredSkills": job.get("required_skills") or []}
        for job in active_catalog()
    ]
    return get_ml_client().match_jobs(skills, jobs)
