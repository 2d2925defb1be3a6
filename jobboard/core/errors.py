"""
Error taxonomy.

Every domain failure is an AppError subclass carrying an HTTP status and a
stable machine-readable code. Services raise these; main.py turns them into
{"detail": ..., "code": ...} responses.

    ValidationError      400  malformed / missing input
    AuthenticationError  401  bad, missing or expired token / credentials
    AuthorizationError   403  authenticated but not allowed
    NotFoundError        404  referenced entity absent
    ConflictError        409  duplicates, invalid state transitions
    DependencyError      502  email / ML capability unavailable or timed out
    InternalError        500  anything unexpected
"""

from typing import Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.message
        if code:
            self.code = code
        super().__init__(self.message)


# ============================================================
# BASE CATEGORIES
# ============================================================

class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    code = "authentication_error"
    message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    code = "authorization_error"
    message = "Not allowed"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    message = "Conflict"


class DependencyError(AppError):
    status_code = 502
    code = "dependency_error"
    message = "External service unavailable"


class InternalError(AppError):
    pass


# ============================================================
# CREDENTIALS & SESSION
# ============================================================

class AdminRegistrationForbidden(AuthorizationError):
    code = "admin_registration_forbidden"
    message = "Cannot register as admin"


class UserExists(ConflictError):
    code = "user_exists"
    message = "User already exists"


class OtpExpired(ValidationError):
    code = "otp_expired"
    message = "OTP expired or invalid"


class OtpInvalid(ValidationError):
    code = "otp_invalid"
    message = "Invalid OTP"


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"
    message = "Invalid credentials"


class EmailUnverified(AuthorizationError):
    code = "email_unverified"
    message = "Please verify your email first"


class TokenInvalidOrExpired(ValidationError):
    code = "token_invalid_or_expired"
    message = "Invalid or expired token"


class Unauthorized(AuthenticationError):
    code = "unauthorized"
    message = "Not authorized, token failed"


class VerificationRequired(AuthorizationError):
    code = "verification_required"
    message = "Please verify your email first"


# ============================================================
# DOMAIN
# ============================================================

class UserNotFound(NotFoundError):
    code = "user_not_found"
    message = "User not found"


class JobNotFound(NotFoundError):
    code = "job_not_found"
    message = "Job not found"


class ApplicationNotFound(NotFoundError):
    code = "application_not_found"
    message = "Application not found"


class ResumeNotFound(NotFoundError):
    code = "resume_not_found"
    message = "Resume not found"


class JobClosed(ValidationError):
    code = "job_closed"
    message = "Job is not accepting applications"


class AlreadyApplied(ConflictError):
    code = "already_applied"
    message = "You have already applied to this job"


class ResumeRequired(ValidationError):
    code = "resume_required"
    message = "Please upload your resume before applying"


class InvalidTransition(ConflictError):
    code = "invalid_transition"
    message = "Invalid status transition"


class UnsupportedFileType(ValidationError):
    code = "unsupported_file_type"
    message = "Only PDF, DOC, DOCX and TXT files are allowed"


class FileTooLarge(ValidationError):
    status_code = 413
    code = "file_too_large"
    message = "File too large"


class NoSkillsOnFile(ValidationError):
    code = "no_skills_on_file"
    message = "User skills not found"


class CannotDeleteSelf(AuthorizationError):
    code = "cannot_delete_self"
    message = "Cannot delete your own account"
