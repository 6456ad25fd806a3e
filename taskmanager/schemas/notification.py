from pydantic import BaseModel, Field
from typing import Any, Dict
from .user import EMAIL_PATTERN


class SendEmailRequest(BaseModel):
    to: str = Field(..., pattern=EMAIL_PATTERN)
    subject: str = Field(..., min_length=1)
    template: str = Field(..., pattern=r"^[a-z0-9-]+$")
    context: Dict[str, Any] = Field(default_factory=dict)


class SendEmailResponse(BaseModel):
    success: bool
    message: str
