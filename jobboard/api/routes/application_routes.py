"""
Application Routes

POST /applications - Apply to a job (student with a resume on file)
GET /applications/check?job_id= - Has the caller applied to this job?
POST /applications/calculate-fit - Fit score preview for a skill list
GET /applications/me - Caller's applications
GET /applications/user/{user_id} - A user's applications (self or admin)
GET /applications/recruiter - Applications to the caller's jobs
GET /applications/{app_id} - Application details
PUT /applications/{app_id}/status - Move along the status machine
PUT /applications/{app_id}/schedule-interview - Schedule interview + email
GET /applications/{app_id}/resume - Download the snapshotted resume
DELETE /applications/{app_id} - Remove an application
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from jobboard.core.auth import get_current_user
from jobboard.services import application_service
from jobboard.schemas.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationCheckResponse, ApplicationStatusUpdate,
    FitScoreRequest, FitScoreResponse, InterviewScheduleRequest, InterviewScheduleResponse,
    MessageResponse
)

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply(data: ApplicationCreate, user: dict = Depends(get_current_user)):
    """Apply to a job. The current resume is snapshotted and a fit score computed."""
    return application_service.create_application(user, data.job_id)


@router.get("/check", response_model=ApplicationCheckResponse)
async def check_application(job_id: str = Query(...), user: dict = Depends(get_current_user)):
    return application_service.check_application(user, job_id)


@router.post("/calculate-fit", response_model=FitScoreResponse)
async def calculate_fit(data: FitScoreRequest):
    return application_service.calculate_fit(data.job_id, data.skills)


@router.get("/me", response_model=List[ApplicationResponse])
async def my_applications(user: dict = Depends(get_current_user)):
    return application_service.list_user_applications(user)


@router.get("/user/{user_id}", response_model=List[ApplicationResponse])
async def user_applications(user_id: str, user: dict = Depends(get_current_user)):
    return application_service.list_user_applications(user, user_id)


@router.get("/recruiter", response_model=List[ApplicationResponse])
async def recruiter_applications(user: dict = Depends(get_current_user)):
    return application_service.list_recruiter_applications(user)


@router.get("/{app_id}", response_model=ApplicationResponse)
async def get_application(app_id: str, user: dict = Depends(get_current_user)):
    return application_service.get_application(user, app_id)


@router.put("/{app_id}/status", response_model=ApplicationResponse)
async def update_status(app_id: str, data: ApplicationStatusUpdate, user: dict = Depends(get_current_user)):
    """
    pending -> interview_scheduled | rejected
    interview_scheduled -> hired | rejected

    "approved" is accepted as interview_scheduled.
    """
    return application_service.update_status(user, app_id, data.status, data.notes)


@router.put("/{app_id}/schedule-interview", response_model=InterviewScheduleResponse)
async def schedule_interview(app_id: str, data: InterviewScheduleRequest, user: dict = Depends(get_current_user)):
    """
    Schedule (or reschedule) an interview.

    The interview is saved even when the notification email fails; the
    response then carries a warning.
    """
    return application_service.schedule_interview(user, app_id, data.interview_date)


@router.get("/{app_id}/resume")
async def download_resume(app_id: str, user: dict = Depends(get_current_user)):
    path, filename = application_service.resume_for_application(user, app_id)
    return FileResponse(path, filename=filename)


@router.delete("/{app_id}", response_model=MessageResponse)
async def delete_application(app_id: str, user: dict = Depends(get_current_user)):
    return application_service.delete_application(user, app_id)
