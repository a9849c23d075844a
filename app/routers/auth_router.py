# app/routers/auth_router.py
from typing import Optional
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from ..application.services.auth_service import AuthService, OtpIssueResult
from ..application.services.profile_service import ProfileService
from ..dependencies import get_auth_service, get_profile_service, get_current_user_id
from ..schemas import (
    RegisterRequest, RegisterResponse, SendOTPRequest, OTPIssueResponse,
    VerifyOTPRequest, VerifyOTPResponse, MessageResponse,
    UpdateProfileRequest, UserResponse, UserEnvelope, ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def _otp_issue_response(result: OtpIssueResult, include_exists: bool) -> OTPIssueResponse:
    if result.delivered:
        message = "OTP sent to your email"
    elif result.email_not_configured:
        message = "OTP generated (email not configured - check console)"
    else:
        message = "OTP generated (email delivery failed - check console)"
    response = OTPIssueResponse(success=True, message=message)
    if include_exists:
        response.isExist = True
    if result.otp is not None:
        response.otp = result.otp
        response.isDevelopment = True
    return response


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create an account and send the email verification link in the background."""
    result = auth_service.register(payload.name, payload.email, payload.phone)
    background_tasks.add_task(
        auth_service.send_verification_email,
        result.user.email,
        result.verification_token,
        result.user.name,
    )
    return RegisterResponse(
        success=True,
        token=result.token,
        data={
            "id": result.user.id,
            "name": result.user.name,
            "email": result.user.email,
            "phone": result.user.phone,
        },
    )


@router.get("/login", response_model=OTPIssueResponse, response_model_exclude_none=True)
def login(
    email: Optional[str] = Query(None),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Send a login code to an existing account's email."""
    result = auth_service.request_login(email)
    if not result.user_exists:
        return OTPIssueResponse(success=True, isExist=False, message="User not found")
    return _otp_issue_response(result, include_exists=True)


@router.post("/send-otp", response_model=OTPIssueResponse, response_model_exclude_none=True)
def send_otp(payload: SendOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Create an account for a new email and send it a verification code."""
    result = auth_service.request_registration_otp(payload.name, payload.phone, payload.email)
    return _otp_issue_response(result, include_exists=False)


@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(payload: VerifyOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    token = auth_service.verify_otp(payload.email, payload.otp)
    return VerifyOTPResponse(success=True, token=token)


@router.get("/verify-email", response_model=MessageResponse)
def verify_email(token: Optional[str] = Query(None), auth_service: AuthService = Depends(get_auth_service)):
    auth_service.verify_email(token)
    return MessageResponse(success=True, message="Email verified successfully")


@router.get("/me", response_model=UserEnvelope)
def get_me(
    current_user_id: str = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
):
    user = profile_service.get_current_user(current_user_id)
    return UserEnvelope(success=True, data=UserResponse.from_dto(user))


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    payload: UpdateProfileRequest,
    current_user_id: str = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
):
    # only fields present in the request body take part in the update
    provided = payload.dict(exclude_unset=True)
    user = profile_service.update_profile(current_user_id, provided)
    return UserEnvelope(
        success=True,
        message="Profile updated successfully",
        data=UserResponse.from_dto(user),
    )
