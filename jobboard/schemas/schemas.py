"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class Role(str, Enum):
    student = "student"
    recruiter = "recruiter"
    admin = "admin"


class ApplicationStatus(str, Enum):
    pending = "pending"
    interview_scheduled = "interview_scheduled"
    hired = "hired"
    rejected = "rejected"


class AnalyticsRange(str, Enum):
    week = "week"
    month = "month"
    year = "year"
    all = "all"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str
    # Plain string so admin/super_admin reach the service and get a 403
    role: str = Role.student.value

class RegisterResponse(BaseModel):
    message: str
    email: str
    next_step: str = "verify-otp"

class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    password: str

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    is_verified: bool
    skills: List[str] = []
    resume_ref: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    required_skills: List[str] = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1)
    recruiter_name: str = Field(..., min_length=1)
    location: Optional[str] = None
    salary: Optional[str] = None
    type: Optional[str] = None
    experience: Optional[str] = None
    remote: bool = False

class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    required_skills: Optional[List[str]] = None
    company_name: Optional[str] = None
    recruiter_name: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    type: Optional[str] = None
    experience: Optional[str] = None
    remote: Optional[bool] = None

class JobResponse(BaseModel):
    id: str
    recruiter_id: Optional[str] = None
    title: str
    description: str
    required_skills: List[str] = []
    company_name: str
    recruiter_name: str
    location: Optional[str] = None
    salary: Optional[str] = None
    type: Optional[str] = None
    experience: Optional[str] = None
    remote: bool = False
    is_active: bool
    posted_at: datetime

class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int

class ToggleActiveResponse(BaseModel):
    id: str
    is_active: bool


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    job_id: str

class ApplicationStatusUpdate(BaseModel):
    # String, not the enum: older clients still send "approved"
    status: str
    notes: Optional[str] = None

class InterviewScheduleRequest(BaseModel):
    interview_date: datetime

class FitScoreRequest(BaseModel):
    job_id: str
    skills: List[str] = []

class FitScoreResponse(BaseModel):
    score: int

class InterviewInfo(BaseModel):
    date: datetime
    link: str

class ApplicationResponse(BaseModel):
    id: str
    user_id: str
    job_id: str
    status: ApplicationStatus
    fit_score: int
    resume_snapshot_ref: str
    notes: Optional[str] = None
    interview: Optional[InterviewInfo] = None
    applied_at: datetime
    updated_at: datetime
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    applicant_skills: Optional[List[str]] = None

class ApplicationCheckResponse(BaseModel):
    success: bool = True
    data: Optional[ApplicationResponse] = None


# ============================================================
# SIDE EFFECT (SAGA) SCHEMAS
# ============================================================

class SideEffectResult(BaseModel):
    """Outcome of a best-effort step that runs after the primary write."""
    delivered: bool
    error: Optional[str] = None

class InterviewScheduleResponse(BaseModel):
    message: str
    application: ApplicationResponse
    email: SideEffectResult
    warning: Optional[str] = None


# ============================================================
# RESUME SCHEMAS
# ============================================================

class ResumeUploadResponse(BaseModel):
    success: bool
    message: str
    resume_ref: str
    skills: List[str] = []
    parsed_data: Dict[str, Any] = {}


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class RoleChangeRequest(BaseModel):
    role: str

class AdminInviteRequest(BaseModel):
    email: EmailStr

class AdminInviteResponse(BaseModel):
    message: str
    email: str
    expires_at: datetime
    email_delivery: SideEffectResult
    warning: Optional[str] = None

class AcceptInviteRequest(BaseModel):
    token: str = Field(..., min_length=1)

class AdminLogResponse(BaseModel):
    id: str
    actor_id: str
    action: str
    target_id: Optional[str] = None
    metadata: Dict[str, Any] = {}
    timestamp: datetime
    actor_name: Optional[str] = None
    actor_email: Optional[str] = None

class AdminLogListResponse(BaseModel):
    logs: List[AdminLogResponse]
    total: int
    total_pages: int
    current_page: int

class PlatformMetricsResponse(BaseModel):
    total_users: int
    total_students: int
    total_recruiters: int
    total_admins: int
    total_jobs: int
    active_jobs: int
    inactive_jobs: int
    total_applications: int
    avg_applications_per_job: float

class DayActivity(BaseModel):
    name: str
    active: int

class AnalyticsCardResponse(BaseModel):
    total_users: int
    active_jobs: int
    total_applications: int
    student_count: int
    recruiter_count: int
    admin_count: int
    user_activity: List[DayActivity]


# ============================================================
# RECRUITER SCHEMAS
# ============================================================

class JobApplicationCount(BaseModel):
    job_id: str
    title: str
    applications: int

class RecruiterAnalyticsResponse(BaseModel):
    total_jobs: int
    total_applications: int
    applications_per_job: List[JobApplicationCount]

class SkillGapResponse(BaseModel):
    job_id: str
    missing_skills: List[str]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
    code: str
