"""
Account endpoints: register, verify email, login, resend verification
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from bid_accounts.core.config import Settings
from bid_accounts.routers.deps import get_account_service, get_settings
from bid_accounts.schemas.auth import (
    AccountSummary,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    ResendVerificationResponse,
    VerifyEmailResponse,
)
from bid_accounts.services.accounts import AccountService

router = APIRouter(tags=["accounts"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: Optional[RegisterRequest] = Body(default=None),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new account

    - **fullName**: 2 to 50 characters
    - **email**: must not be registered yet
    - **password**
    - **role**: free-form
    """
    payload = payload or RegisterRequest()
    account = service.register(payload.full_name, payload.email, payload.password, payload.role)

    if service.is_gated:
        message = "Registration successful! Please check your email to verify your account."
    else:
        message = "Registration successful! You can now login to your account."

    token = account.verification_token if settings.expose_verification_token else None
    return RegisterResponse(message=message, user_id=account.id, verification_token=token)


@router.get("/verify-email", response_model=VerifyEmailResponse)
def verify_email(
    token: Optional[str] = Query(default=None),
    service: AccountService = Depends(get_account_service),
):
    """Confirm an email address with the token sent by email"""
    service.verify_email(token)
    return VerifyEmailResponse(
        message="Email verified successfully! You can now login to your account.",
        is_verified=True,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: Optional[LoginRequest] = Body(default=None),
    service: AccountService = Depends(get_account_service),
):
    """Check an email and password and return the account summary"""
    payload = payload or LoginRequest()
    account = service.login(payload.email, payload.password)
    return LoginResponse(message="Login successful", user=AccountSummary.from_account(account))


@router.post(
    "/resend-verification",
    response_model=ResendVerificationResponse,
    response_model_exclude_none=True,
)
def resend_verification(
    payload: Optional[ResendVerificationRequest] = Body(default=None),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
):
    """Send a new verification email (or a welcome email when accounts are auto-verified)"""
    payload = payload or ResendVerificationRequest()
    token = service.resend_verification(payload.email)

    if not service.is_gated:
        return ResendVerificationResponse(
            message="Welcome email sent successfully! Your account is already active."
        )
    return ResendVerificationResponse(
        message="Verification email sent successfully! Please check your email.",
        verification_token=token if settings.expose_verification_token else None,
    )
