from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import List, Optional

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(None, min_length=6)
    notification_enabled: Optional[bool] = None
    notification_intervals: Optional[List[int]] = None
    notification_type: Optional[str] = Field(None, pattern="^(email|push)$")

    @field_validator("notification_intervals")
    @classmethod
    def intervals_must_be_positive(cls, value):
        if value is not None and any(minutes <= 0 for minutes in value):
            raise ValueError("notification intervals must be positive minutes")
        return value


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    roles: List[str]
    notification_enabled: bool
    notification_intervals: List[int]
    notification_type: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
