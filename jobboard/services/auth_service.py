"""
Credential & Session Service

Registration is OTP-gated:

    unregistered --register--> otp_pending --verify_otp--> verified user

`register` never writes to `users`; the pending entry (name, role, password
hash, code hash) sits in the TTL-evicted pending_registrations collection
until `verify_otp` turns it into a user. That is the only path that creates
a user.
"""

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Optional

from pymongo.errors import DuplicateKeyError

from jobboard.core.auth import hash_password, verify_password, create_session_token
from jobboard.core.config import get_settings
from jobboard.core.errors import (
    AdminRegistrationForbidden, DependencyError, EmailUnverified, InvalidCredentials,
    OtpExpired, OtpInvalid, TokenInvalidOrExpired, UserExists, ValidationError,
)
from jobboard.schemas.schemas import Role
from jobboard.services.email_service import get_email_service
from jobboard.services.mongo_service import UserStore, serialize_doc, utcnow
from jobboard.services.otp_store import OtpStore, generate_otp

settings = get_settings()
logger = logging.getLogger(__name__)

FORBIDDEN_REGISTRATION_ROLES = {"admin", "super_admin"}


# ============================================================
# HELPERS
# ============================================================

def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def parse_registration_role(role: Optional[str]) -> Role:
    """Self-registration may pick student or recruiter, nothing else."""
    value = (role or Role.student.value).strip().lower()
    if value in FORBIDDEN_REGISTRATION_ROLES:
        raise AdminRegistrationForbidden()
    try:
        parsed = Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role '{role}'")
    if parsed is Role.admin:
        raise AdminRegistrationForbidden()
    return parsed


def validate_password(password: Optional[str]) -> None:
    if not password or len(password) < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters long"
        )


def user_public(user: dict) -> dict:
    """User document -> UserResponse shape (no password, no reset token)."""
    doc = serialize_doc(user)
    history = doc.get("login_history") or []
    return {
        "id": doc["id"],
        "name": doc["name"],
        "email": doc["email"],
        "role": doc["role"],
        "is_verified": doc.get("is_verified", False),
        "skills": doc.get("skills") or [],
        "resume_ref": doc.get("resume_ref"),
        "created_at": doc["created_at"],
        "last_login": history[-1] if history else None,
    }


def issue_session(user: dict) -> dict:
    return {
        "access_token": create_session_token(user),
        "token_type": "bearer",
        "user": user_public(user),
    }


# ============================================================
# REGISTRATION
# ============================================================

def register(name: str, email: str, password: str, role: Optional[str] = None) -> dict:
    """Create a pending registration and email its verification code."""
    role = parse_registration_role(role)
    validate_password(password)
    email = normalize_email(email)
    name = name.strip()

    if UserStore().get_by_email(email):
        raise UserExists()

    code = generate_otp()
    otp_store = OtpStore()
    otp_store.put(
        email, code,
        ttl=timedelta(minutes=settings.otp_expire_minutes),
        name=name,
        role=role.value,
        password_hash=hash_password(password),
    )

    result = get_email_service().send_verification_otp(email, name, code)
    if not result.delivered:
        otp_store.discard(email)
        logger.warning("Verification email to %s failed: %s", email, result.error)
        raise DependencyError("Verification email could not be sent")

    logger.info("Pending registration created for %s (%s)", email, role.value)
    return {
        "message": "Verification OTP sent to your email",
        "email": email,
        "next_step": "verify-otp",
    }


def verify_otp(email: str, otp: str, name: Optional[str] = None,
               password: Optional[str] = None, role: Optional[str] = None) -> dict:
    """
    Check the code and create the user. Omitted name/password/role fall back
    to what was captured at registration.
    """
    email = normalize_email(email)
    otp_store = OtpStore()

    entry = otp_store.get(email)
    if entry is None:
        raise OtpExpired()
    if not OtpStore.matches(entry, email, otp.strip()):
        raise OtpInvalid()

    final_role = parse_registration_role(role).value if role else entry["role"]
    if password:
        validate_password(password)
        password_hash = hash_password(password)
    else:
        password_hash = entry["password_hash"]

    users = UserStore()
    try:
        user_id = users.insert(
            name=(name or "").strip() or entry["name"],
            email=email,
            password_hash=password_hash,
            role=final_role,
            is_verified=True,
        )
    except DuplicateKeyError:
        otp_store.discard(email)
        raise UserExists()

    otp_store.discard(email)
    logger.info("User %s verified and created", email)
    return issue_session(users.get_by_id(user_id))


# ============================================================
# SESSION
# ============================================================

def login(email: str, password: str) -> dict:
    email = normalize_email(email)
    users = UserStore()
    user = users.get_by_email(email)

    if user is None:
        # Registered but never verified: tell them so, if they proved the password
        pending = OtpStore().get(email)
        if pending and verify_password(password, pending["password_hash"]):
            raise EmailUnverified()
        raise InvalidCredentials()

    if not verify_password(password, user["password"]):
        raise InvalidCredentials()

    if not user.get("is_verified"):
        raise EmailUnverified()

    now = utcnow()
    users.append_login(user["_id"], now)
    user.setdefault("login_history", []).append(now)
    return issue_session(user)


def get_me(actor: dict) -> dict:
    return user_public(actor)


# ============================================================
# PASSWORD RESET
# ============================================================

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a reset link has been sent"


def forgot_password(email: str) -> dict:
    email = normalize_email(email)
    users = UserStore()
    user = users.get_by_email(email)
    if user is None:
        return {"message": RESET_REQUESTED_MESSAGE, "success": True}

    token = secrets.token_hex(20)
    expires = utcnow() + timedelta(minutes=settings.reset_token_expire_minutes)
    users.set_reset_token(user["_id"], hash_reset_token(token), expires)

    reset_url = f"{settings.frontend_url}/reset-password/{token}"
    result = get_email_service().send_password_reset(email, user["name"], reset_url)
    if not result.delivered:
        users.set_reset_token(user["_id"], None, None)
        logger.warning("Password reset email to %s failed: %s", email, result.error)
        raise DependencyError("Email could not be sent")

    return {"message": RESET_REQUESTED_MESSAGE, "success": True}


def reset_password(token: str, password: str) -> dict:
    validate_password(password)
    user = UserStore().consume_reset_token(hash_reset_token(token), utcnow(), hash_password(password))
    if user is None:
        raise TokenInvalidOrExpired()
    logger.info("Password reset for %s", user["email"])
    return {"message": "Password updated successfully", "success": True}
