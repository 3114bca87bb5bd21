"""Account registration, login, and recovery endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from payroll_admin.api.dependencies import AppSettings, Auth
from payroll_admin.api.schemas import (
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    PasswordReset,
    PasswordResetRequest,
    RegisterRequest,
    TokenResponse,
    ValidationErrorResponse,
    VerifyEmailRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ValidationErrorResponse}, 409: {"model": ErrorResponse}},
)
async def register(auth: Auth, payload: RegisterRequest) -> MessageResponse:
    """Register an accountant or a client company and send a verification email."""
    await auth.register(
        payload.email,
        payload.password,
        payload.user_type,
        company_name=payload.company_name,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return MessageResponse(
        message="User registered successfully. Please check your email to verify your account."
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}},
)
async def login(auth: Auth, settings: AppSettings, payload: LoginRequest) -> TokenResponse:
    token = await auth.login(payload.email, payload.password)
    return TokenResponse(token=token, expires_in=settings.token_expire_minutes * 60)


@router.post(
    "/verify-email",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def verify_email(auth: Auth, payload: VerifyEmailRequest) -> MessageResponse:
    await auth.verify_email(payload.token)
    return MessageResponse(message="Email verified successfully")


@router.get(
    "/verify-email",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def verify_email_link(
    auth: Auth,
    token: Annotated[str, Query(min_length=1)],
) -> MessageResponse:
    """Target of the link in the verification email."""
    await auth.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.post(
    "/reset-password-request",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def request_password_reset(auth: Auth, payload: PasswordResetRequest) -> MessageResponse:
    await auth.request_password_reset(payload.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def reset_password(auth: Auth, payload: PasswordReset) -> MessageResponse:
    await auth.reset_password(payload.token, payload.password)
    return MessageResponse(message="Password reset successfully")
