"""
Pydantic schemas for the account endpoints
"""
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schemas rendered with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests. Fields are optional so that missing values reach the service,
# which answers with its own validation message.

class RegisterRequest(BaseModel):
    full_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("fullName", "fullname", "full_name"),
    )
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ResendVerificationRequest(BaseModel):
    email: Optional[str] = None


# Responses

class AccountSummary(CamelModel):
    """Non-sensitive view of an account"""
    id: str
    full_name: str
    email: str
    role: str
    is_email_verified: bool

    @classmethod
    def from_account(cls, account) -> "AccountSummary":
        return cls(
            id=account.id,
            full_name=account.full_name,
            email=account.email,
            role=account.role,
            is_email_verified=account.is_email_verified,
        )


class MessageResponse(CamelModel):
    message: str


class RegisterResponse(CamelModel):
    message: str
    user_id: str
    verification_token: Optional[str] = None


class VerifyEmailResponse(CamelModel):
    message: str
    is_verified: bool = True


class LoginResponse(CamelModel):
    message: str
    user: AccountSummary


class ResendVerificationResponse(CamelModel):
    message: str
    verification_token: Optional[str] = None
