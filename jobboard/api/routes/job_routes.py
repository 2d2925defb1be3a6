"""
Job Routes

GET /jobs - Search active jobs (admins may pass include_inactive=true)
POST /jobs - Create job posting (recruiter only)
GET /jobs/mine - The calling recruiter's jobs, inactive included
GET /jobs/{job_id} - Get job details
PUT /jobs/{job_id} - Update job (owner or admin)
PATCH /jobs/{job_id}/toggle-active - Open/close a job (owner or admin)
DELETE /jobs/{job_id} - Delete job (owner or admin)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from jobboard.core.auth import get_current_user, get_optional_user
from jobboard.services import job_service
from jobboard.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, ToggleActiveResponse, MessageResponse
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("", response_model=JobListResponse)
async def search_jobs(
    q: Optional[str] = Query(None, description="Matches title, description or company"),
    location: Optional[str] = None,
    type: Optional[str] = None,
    experience: Optional[str] = None,
    remote: Optional[bool] = None,
    skills: Optional[str] = Query(None, description="Comma-separated, any of"),
    include_inactive: bool = False,
    user: Optional[dict] = Depends(get_optional_user)
):
    """List jobs with filters. Newest first."""
    skill_list: List[str] = skills.split(",") if skills else []
    return job_service.search_jobs(
        actor=user, include_inactive=include_inactive,
        q=q, location=location, type=type, experience=experience, remote=remote, skills=skill_list
    )


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, user: dict = Depends(get_current_user)):
    """Create a new job posting. Only recruiters can create jobs."""
    return job_service.create_job(user, job)


@router.get("/mine", response_model=JobListResponse)
async def my_jobs(user: dict = Depends(get_current_user)):
    return job_service.list_recruiter_jobs(user)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, user: Optional[dict] = Depends(get_optional_user)):
    """Get job details. Inactive jobs are visible to their owner and admins only."""
    return job_service.get_job(job_id, user)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(job_id: str, data: JobUpdate, user: dict = Depends(get_current_user)):
    """Update job. Only provided fields are updated."""
    return job_service.update_job(user, job_id, data)


@router.patch("/{job_id}/toggle-active", response_model=ToggleActiveResponse)
async def toggle_active(job_id: str, user: dict = Depends(get_current_user)):
    return job_service.toggle_active(user, job_id)


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: str, user: dict = Depends(get_current_user)):
    """Delete a job. Existing applications are kept."""
    return job_service.delete_job(user, job_id)
