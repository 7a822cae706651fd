"""Authentication and account Pydantic models."""

from typing import Optional, List

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .common import BaseResponse, CommonValidators, NavItem, UserRole


class SignInRequest(BaseModel):
    """Sign-in form."""
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return CommonValidators.validate_password(v)


class SignUpRequest(BaseModel):
    """Patient self-registration form."""
    full_name: str
    email: EmailStr
    password: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return CommonValidators.validate_full_name(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return CommonValidators.validate_password(v)


class ForgotPasswordRequest(BaseModel):
    """Request a password reset link."""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Set a new password from a recovery session."""
    password: str
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Password and confirmation must match")
        CommonValidators.validate_password(self.password)
        return self


class ResetEmailRequest(BaseModel):
    """Payload of the reset-email notification function."""
    email: EmailStr
    reset_link: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None


class Session(BaseModel):
    """Access token issued by the auth server."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: SessionUser


class SessionResponse(BaseResponse):
    data: Session


class AccountInfo(BaseModel):
    """Current user with role-based navigation."""
    id: str
    email: Optional[str] = None
    role: UserRole
    role_label: str
    full_name: Optional[str] = None
    navigation: List[NavItem]


class AccountResponse(BaseResponse):
    data: AccountInfo


class StaffCreate(BaseModel):
    """New medical staff (admin) account."""
    full_name: str
    email: EmailStr
    password: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return CommonValidators.validate_full_name(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return CommonValidators.validate_password(v)
