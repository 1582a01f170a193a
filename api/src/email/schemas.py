"""Pydantic schemas for the email system.

Request/Response models for:
- Sending emails
- Template management
- Delivery logs
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class EmailRecipient(BaseModel):
    """Email recipient with optional name."""

    email: EmailStr = Field(..., description="Recipient email address")
    name: str | None = Field(None, description="Recipient display name")


class SendEmailRequest(BaseModel):
    """Request to send an email."""

    to: list[EmailRecipient] = Field(
        ..., min_length=1, max_length=50, description="Recipients (max 50)"
    )
    subject: str = Field(..., min_length=1, max_length=998, description="Email subject")
    body_html: str = Field(..., min_length=1, description="HTML body content")
    body_text: str | None = Field(None, description="Plain text body (fallback)")
    reply_to: EmailStr | None = Field(None, description="Reply-to address")


class SendEmailResponse(BaseModel):
    """Response after sending an email."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(..., description="Whether the email was sent successfully")
    message_id: str | None = Field(None, description="Provider message ID")
    error: str | None = Field(None, description="Error message if failed")


class EmailTemplateResponse(BaseModel):
    """Stored email template."""

    name: str
    subject: str
    html_content: str
    text_content: str
    variables: list[str]
    created_at: datetime
    updated_at: datetime | None = None


class UpdateEmailTemplateRequest(BaseModel):
    """Replace the content of a stored template."""

    subject: str = Field(..., min_length=1, max_length=998)
    html_content: str = Field(..., min_length=1)
    text_content: str = ""


class EmailLogResponse(BaseModel):
    """Logged send attempt."""

    id: UUID
    user_id: UUID | None = None
    template_name: str | None = None
    to_email: str
    subject: str
    status: str
    error_message: str | None = None
    created_at: datetime


class EmailStatusResponse(BaseModel):
    """Email delivery configuration status."""

    enabled: bool
    configured: bool
    transport: str
    sender_address: str | None = None
