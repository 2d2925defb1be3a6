"""
Authentication Routes

POST /auth/register - Start registration, emails a 6-digit code
POST /auth/verify-otp - Verify the code, creates the account, returns JWT
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
POST /auth/forgot-password - Email a password reset link
PUT /auth/reset-password/{token} - Set a new password with a reset token
"""

from fastapi import APIRouter, Depends

from jobboard.core.auth import get_current_user
from jobboard.services import auth_service
from jobboard.schemas.schemas import (
    RegisterRequest, RegisterResponse, VerifyOtpRequest, LoginRequest, TokenResponse,
    UserResponse, ForgotPasswordRequest, ResetPasswordRequest, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new account.

    Nothing is created yet: a verification code is emailed, then call
    /auth/verify-otp with it. Admin accounts can't be self-registered.
    """
    return auth_service.register(request.name, request.email, request.password, request.role)


@router.post("/verify-otp", response_model=TokenResponse, status_code=201)
async def verify_otp(request: VerifyOtpRequest):
    """Verify the emailed code. Creates the account and logs it in."""
    return auth_service.verify_otp(
        request.email, request.otp,
        name=request.name, password=request.password, role=request.role
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    return auth_service.login(request.email, request.password)


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current user information."""
    return auth_service.get_me(user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request: ForgotPasswordRequest):
    """Same answer whether or not the email has an account."""
    return auth_service.forgot_password(request.email)


@router.put("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(token: str, request: ResetPasswordRequest):
    return auth_service.reset_password(token, request.password)
