"""
Resume Routes

POST /resumes/upload - Upload resume (PDF/DOC/DOCX/TXT, max 5MB), parsed by the ML service
GET /resumes/me - Download own current resume
POST /resumes/recommendations - Jobs ranked against own skills
"""

from typing import Any

from fastapi import APIRouter, Depends, UploadFile, File
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse

from jobboard.core.auth import get_current_user
from jobboard.services import resume_service
from jobboard.schemas.schemas import ResumeUploadResponse

router = APIRouter(prefix="/resumes", tags=["Resumes"])


@router.post("/upload", response_model=ResumeUploadResponse)
async def upload_resume(resume: UploadFile = File(...), user: dict = Depends(get_current_user)):
    """
    Upload and parse a resume.

    On success the extracted skills replace the user's skills. If the parser
    is unavailable nothing changes and a 502 is returned.
    """
    return await resume_service.upload_resume(user, resume)


@router.get("/me")
async def download_own_resume(user: dict = Depends(get_current_user)):
    path, filename = resume_service.own_resume(user)
    return FileResponse(path, filename=filename)


@router.post("/recommendations")
async def recommendations(user: dict = Depends(get_current_user)) -> Any:
    """Ranked matches from the ML service, relayed as-is."""
    return await run_in_threadpool(resume_service.recommend_jobs, user)
