"""
Recruiter Routes

GET /recruiter/analytics - Applications per owned job
GET /recruiter/jobs/{job_id}/skill-gap - Required skills no applicant has
GET /recruiter/jobs/{job_id}/applicants - Applicants with name/email/skills
"""

from typing import List

from fastapi import APIRouter, Depends

from jobboard.core.auth import get_current_user
from jobboard.services import recruiter_service
from jobboard.schemas.schemas import ApplicationResponse, RecruiterAnalyticsResponse, SkillGapResponse

router = APIRouter(prefix="/recruiter", tags=["Recruiter"])


@router.get("/analytics", response_model=RecruiterAnalyticsResponse)
async def analytics(user: dict = Depends(get_current_user)):
    return recruiter_service.recruiter_analytics(user)


@router.get("/jobs/{job_id}/skill-gap", response_model=SkillGapResponse)
async def skill_gap(job_id: str, user: dict = Depends(get_current_user)):
    return recruiter_service.skill_gap(user, job_id)


@router.get("/jobs/{job_id}/applicants", response_model=List[ApplicationResponse])
async def job_applicants(job_id: str, user: dict = Depends(get_current_user)):
    return recruiter_service.job_applicants(user, job_id)
