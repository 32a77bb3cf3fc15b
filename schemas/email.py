"""Transactional email schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SendEmailRequest(BaseModel):
    """Generic transactional email request."""

    model_config = ConfigDict(populate_by_name=True)

    to: str | list[str] = Field(..., description="Recipient address or addresses")
    subject: str = Field(..., min_length=1, description="Email subject")
    html: str = Field(..., min_length=1, description="HTML body")
    from_: str | None = Field(default=None, alias="from", description="Sender; defaults to the configured address")
    reply_to: str | None = Field(default=None, alias="replyTo", description="Reply-To address")
    cc: list[str] | None = Field(default=None, description="CC recipients")
    bcc: list[str] | None = Field(default=None, description="BCC recipients")

    @field_validator("to")
    @classmethod
    def _require_recipient(cls, value: str | list[str]) -> str | list[str]:
        if not value:
            raise ValueError("at least one recipient is required")
        return value

    @property
    def recipients(self) -> list[str]:
        return self.to if isinstance(self.to, list) else [self.to]


class EmailData(BaseModel):
    """Provider response for an accepted email."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Provider message ID")


class SendEmailResponse(BaseModel):
    """Successful send response."""

    success: bool = Field(default=True)
    data: EmailData
    message: str = Field(default="Email sent successfully")


class EmailErrorResponse(BaseModel):
    """Failed send response."""

    error: str
    details: Any | None = None
