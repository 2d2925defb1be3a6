"""
Admin Routes (admin only unless noted)

GET /admin/users - All users
DELETE /admin/users/{user_id} - Delete user (and a recruiter's jobs)
PATCH /admin/users/{user_id}/role - Change role
GET /admin/users/{user_id}/analytics - Role-specific analytics for one user
GET /admin/jobs - All jobs, inactive included
DELETE /admin/jobs/{job_id} - Delete any job
GET /admin/jobs/{job_id}/details - Job with applicant match scores
GET /admin/metrics - Platform counts
GET /admin/analytics-card?range= - Dashboard card with weekly login activity
POST /admin/invite - Invite an email to become admin
POST /admin/accept-invite - Accept an invite (any signed-in user)
GET /admin/logs - Audit trail, paginated
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from jobboard.core.auth import get_current_user, require_role
from jobboard.services import admin_service, job_service
from jobboard.schemas.schemas import (
    Role, AnalyticsRange, UserResponse, RoleChangeRequest, JobListResponse,
    PlatformMetricsResponse, AnalyticsCardResponse, AdminInviteRequest, AdminInviteResponse,
    AcceptInviteRequest, AdminLogListResponse, MessageResponse
)

router = APIRouter(prefix="/admin", tags=["Admin"])

get_current_admin = require_role(Role.admin)


@router.get("/users", response_model=List[UserResponse])
async def list_users(admin: dict = Depends(get_current_admin)):
    return admin_service.list_users(admin)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, admin: dict = Depends(get_current_admin)):
    """Deleting a recruiter also deletes their jobs. You can't delete yourself."""
    return admin_service.delete_user(admin, user_id)


@router.patch("/users/{user_id}/role", response_model=MessageResponse)
async def change_role(user_id: str, data: RoleChangeRequest, admin: dict = Depends(get_current_admin)):
    """Demoting a recruiter keeps their jobs but clears the owner."""
    return admin_service.change_user_role(admin, user_id, data.role)


@router.get("/users/{user_id}/analytics")
async def user_analytics(user_id: str, admin: dict = Depends(get_current_admin)) -> Dict[str, Any]:
    return admin_service.per_user_analytics(admin, user_id)


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(admin: dict = Depends(get_current_admin)):
    return job_service.list_all_jobs(admin)


@router.delete("/jobs/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: str, admin: dict = Depends(get_current_admin)):
    return job_service.delete_job(admin, job_id)


@router.get("/jobs/{job_id}/details")
async def job_details(job_id: str, admin: dict = Depends(get_current_admin)) -> Dict[str, Any]:
    return admin_service.job_details_with_match_scores(admin, job_id)


@router.get("/metrics", response_model=PlatformMetricsResponse)
async def metrics(admin: dict = Depends(get_current_admin)):
    return admin_service.platform_metrics(admin)


@router.get("/analytics-card", response_model=AnalyticsCardResponse)
async def analytics_card(
    range: AnalyticsRange = Query(AnalyticsRange.all),
    admin: dict = Depends(get_current_admin)
):
    return admin_service.analytics_card(admin, range)


@router.post("/invite", response_model=AdminInviteResponse, status_code=201)
async def send_invite(data: AdminInviteRequest, admin: dict = Depends(get_current_admin)):
    """Invite is stored even if the email can't be delivered (see warning)."""
    return admin_service.send_admin_invite(admin, data.email)


@router.post("/accept-invite", response_model=MessageResponse)
async def accept_invite(data: AcceptInviteRequest, user: dict = Depends(get_current_user)):
    """Single use. The signed-in email must match the invited one."""
    return admin_service.accept_admin_invite(user, data.token)


@router.get("/logs", response_model=AdminLogListResponse)
async def list_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: dict = Depends(get_current_admin)
):
    return admin_service.list_admin_logs(admin, page, limit)
