# Schemas
from .auth import (
    AccountSummary,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    ResendVerificationResponse,
    VerifyEmailResponse
)

__all__ = [
    "AccountSummary",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RegisterRequest",
    "RegisterResponse",
    "ResendVerificationRequest",
    "ResendVerificationResponse",
    "VerifyEmailResponse"
]
