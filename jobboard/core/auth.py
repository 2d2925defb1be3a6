"""
Authentication Utility - JWT, password hashing and the authorization guard.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies resolving the actor behind a bearer token
- Role and ownership predicates used by routes and services
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext

from jobboard.core.config import get_settings
from jobboard.core.errors import AuthorizationError, Unauthorized, VerificationRequired
from jobboard.schemas.schemas import Role
from jobboard.services.mongo_service import UserStore

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor - missing header is handled below as a 401
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_session_token(user: dict) -> str:
    """Session token carrying {sub, role}."""
    return create_access_token(data={"sub": str(user["_id"]), "role": user["role"]})


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token (signature and expiry)."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def resolve_actor(token: str) -> dict:
    """
    Token -> user document (without password).

    Raises Unauthorized for a bad/expired token or a subject that no longer
    exists, VerificationRequired for an unverified account.
    """
    payload = decode_token(token)
    if not payload:
        raise Unauthorized()

    user_id = payload.get("sub")
    if not user_id or not ObjectId.is_valid(user_id):
        raise Unauthorized()

    user = UserStore().get_by_id(ObjectId(user_id))
    if not user:
        raise Unauthorized("User not found, authorization denied")

    if not user.get("is_verified"):
        raise VerificationRequired()

    user.pop("password", None)
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    if credentials is None:
        raise Unauthorized("No token, authorization denied")
    return resolve_actor(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[dict]:
    """Like get_current_user, but anonymous callers get None."""
    if credentials is None:
        return None
    return resolve_actor(credentials.credentials)


# ============================================================
# PREDICATES
# ============================================================

def role_of(actor: dict) -> Role:
    return Role(actor["role"])


def is_admin(actor: Optional[dict]) -> bool:
    return actor is not None and role_of(actor) is Role.admin


def ensure_role(actor: dict, *roles: Role, message: Optional[str] = None) -> None:
    if role_of(actor) not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise AuthorizationError(message or f"Requires role: {allowed}")


def require_ownership(owner_id: Optional[ObjectId], actor: dict, message: str = "Not authorized") -> None:
    """owner_id must be the actor. A nulled owner (demoted recruiter) matches nobody."""
    if owner_id is None or owner_id != actor["_id"]:
        raise AuthorizationError(message)


def require_owner_or_admin(owner_id: Optional[ObjectId], actor: dict, message: str = "Not authorized") -> None:
    if is_admin(actor):
        return
    require_ownership(owner_id, actor, message)


def require_role(*roles: Role):
    """
    Dependency factory layering a role check on top of get_current_user.

    Usage:
        @router.get("/admin-only")
        async def route(admin: dict = Depends(require_role(Role.admin))):
            ...
    """
    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        ensure_role(user, *roles, message="Admin access required" if roles == (Role.admin,) else None)
        return user

    return dependency
