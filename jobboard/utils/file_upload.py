"""
File Upload Utility - Validate and store resume files.

Supported formats: PDF, DOC, DOCX, TXT
Max file size: settings.max_upload_mb (5MB)

Files are stored on local disk under settings.upload_dir as
<epoch-ms>-<random>-<sanitized original name>. Only the generated name is
kept on the user / application documents.
"""

import os
import re
import time
import uuid
from typing import Tuple

from fastapi import UploadFile

from jobboard.core.config import get_settings
from jobboard.core.errors import FileTooLarge, UnsupportedFileType, ValidationError

ALLOWED_EXTENSIONS = {'.pdf', '.doc', '.docx', '.txt'}

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_.-]')


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def sanitize_filename(filename: str) -> str:
    """Strip any path and replace everything outside [A-Za-z0-9_.-]."""
    base = os.path.basename(filename.replace('\\', '/'))
    return _UNSAFE_CHARS.sub('_', base) or 'resume'


def generate_stored_name(filename: str) -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{sanitize_filename(filename)}"


def upload_dir() -> str:
    path = get_settings().upload_dir
    os.makedirs(path, exist_ok=True)
    return path


def resume_path(stored_name: str) -> str:
    """Absolute path for a stored name. Refuses anything that isn't a bare filename."""
    if not stored_name or os.path.basename(stored_name) != stored_name:
        raise ValidationError("Invalid resume reference")
    return os.path.join(upload_dir(), stored_name)


async def read_validated_upload(file: UploadFile) -> Tuple[bytes, str]:
    """
    Validate type and size of an upload and return (content, original filename).

    Nothing is written here, so a rejected file never touches disk or DB.
    """
    if not file.filename:
        raise ValidationError("No resume file uploaded")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileType()

    settings = get_settings()
    # limit + 1 bytes is enough to tell "too large"
    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise FileTooLarge(f"File too large. Maximum size: {settings.max_upload_mb}MB")
    if not content:
        raise ValidationError("Uploaded file is empty")

    return content, file.filename


def save_resume(content: bytes, filename: str) -> str:
    """Write content under a fresh generated name. Returns the stored name."""
    stored_name = generate_stored_name(filename)
    with open(resume_path(stored_name), 'wb') as fh:
        fh.write(content)
    return stored_name


def delete_resume(stored_name: str) -> bool:
    """Remove a stored file. Missing files are not an error."""
    try:
        os.remove(resume_path(stored_name))
        return True
    except FileNotFoundError:
        return False


def resume_exists(stored_name: str) -> bool:
    return os.path.isfile(resume_path(stored_name))
